# dao/notification.py
import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from configs import db
from db.models.notification import Notification
from utils.errors import NotFoundError

logger = logging.getLogger(__name__)

INFO = "info"
SUCCESS = "success"
WARNING = "warning"
ERROR = "error"


def notify(user_id, title: str, message: str, severity: str = INFO, link=None):
    """
    Ghi thông báo trong 1 SAVEPOINT: lỗi chỉ log lại, không làm hỏng
    giao dịch của nghiệp vụ đang gọi.
    """
    if not user_id:
        return None
    try:
        with db.session.begin_nested():
            n = Notification(
                user_id=int(user_id),
                title=title,
                message=message,
                type=severity,
                link=link,
            )
            db.session.add(n)
        return n
    except SQLAlchemyError:
        logger.exception("Failed to notify user %s: %s", user_id, title)
        return None


def list_for_user(user_id: int, limit: int = 50) -> List[Notification]:
    return (
        Notification.query.filter_by(user_id=int(user_id))
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )


def mark_read(notification_id: int, user_id: int) -> Notification:
    n = Notification.query.filter_by(id=int(notification_id), user_id=int(user_id)).first()
    if not n:
        raise NotFoundError("Notification", notification_id)
    n.read = True
    _commit()
    return n


def mark_all_read(user_id: int) -> int:
    count = Notification.query.filter_by(user_id=int(user_id), read=False).update(
        {"read": True}
    )
    _commit()
    return count


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
