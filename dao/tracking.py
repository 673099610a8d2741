# dao/tracking.py
"""
Nhật ký vận chuyển của PO (chỉ thêm, không sửa) và quét đơn hàng trễ hạn.

Người nhận thông báo là người tạo yêu cầu vật tư gốc
(PO -> báo giá -> RFQ -> yêu cầu).
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from configs import db
from db.models.delivery import DeliveryTracking
from db.models.purchase import PurchaseOrder, POStatus
from db.models.user import User
from dao import notification as notification_dao, purchase as purchase_dao
from utils.email import get_mailer
from utils.errors import InvalidStateError, ValidationError
from utils.numbers import to_bool

logger = logging.getLogger(__name__)

SHIPPED = "shipped"
IN_TRANSIT = "in_transit"
ARRIVED = "arrived"
DELAYED = "delayed"

EVENT_STATUSES = (SHIPPED, IN_TRANSIT, ARRIVED, DELAYED)

_TRACKABLE = (POStatus.APPROVED, POStatus.SENT, POStatus.IN_TRANSIT, POStatus.DELIVERED)
_WATCHED = (POStatus.APPROVED, POStatus.SENT, POStatus.IN_TRANSIT)

OVERDUE_REASON = "Quá ngày giao hàng dự kiến"


def list_events(po_id: int) -> List[DeliveryTracking]:
    purchase_dao.get_po(po_id)
    return (
        DeliveryTracking.query.filter_by(po_id=int(po_id))
        .order_by(DeliveryTracking.id)
        .all()
    )


def _last_event(po: PurchaseOrder) -> Optional[DeliveryTracking]:
    return (
        DeliveryTracking.query.filter_by(po_id=po.id)
        .order_by(DeliveryTracking.id.desc())
        .first()
    )


def _notify_delay(po: PurchaseOrder, reason: Optional[str]) -> Optional[User]:
    creator_id = purchase_dao.request_creator_id(po)
    notification_dao.notify(
        creator_id,
        "Cảnh báo chậm trễ",
        f"Đơn hàng {po.code} bị chậm trễ: {reason or 'Không rõ lý do'}",
        notification_dao.WARNING,
        f"/purchase-orders/{po.id}",
    )
    return db.session.get(User, creator_id) if creator_id else None


def _mail_delay(user: Optional[User], po: PurchaseOrder, reason: Optional[str]) -> None:
    if user is None:
        return
    try:
        get_mailer().send_delay_alert(user, po, reason)
    except Exception:
        logger.exception("Failed to e-mail delay alert for PO %s to %s", po.code, user.username)


def record_event(
    po_id: int,
    status: str,
    location: Optional[str] = None,
    note: Optional[str] = None,
    is_delayed: bool = False,
    delay_reason: Optional[str] = None,
) -> DeliveryTracking:
    status = (status or "").strip().lower()
    if status not in EVENT_STATUSES:
        raise ValidationError(
            "Trạng thái vận chuyển không hợp lệ.", status=status, allowed=list(EVENT_STATUSES)
        )
    is_delayed = to_bool(is_delayed, "is_delayed") or status == DELAYED

    po = purchase_dao.get_po(po_id, lock=True)
    if po.status not in _TRACKABLE:
        raise InvalidStateError(
            "Đơn hàng chưa được duyệt hoặc đã kết thúc.", status=po.status.value
        )

    ev = DeliveryTracking(
        po_id=po.id,
        status=status,
        location=location,
        note=note,
        is_delayed=is_delayed,
        delay_reason=delay_reason,
    )
    db.session.add(ev)

    if status in (SHIPPED, IN_TRANSIT) and po.status in (POStatus.APPROVED, POStatus.SENT):
        po.status = POStatus.IN_TRANSIT
    elif status == ARRIVED and po.status != POStatus.DELIVERED:
        po.status = POStatus.DELIVERED
        po.actual_delivery = datetime.utcnow()
        notification_dao.notify(
            purchase_dao.request_creator_id(po),
            "Hàng đã đến công trình",
            f"Đơn hàng {po.code} đã giao đến {location or 'công trình'}",
            notification_dao.SUCCESS,
            f"/purchase-orders/{po.id}",
        )

    delayed_user = _notify_delay(po, delay_reason) if is_delayed else None

    _commit()
    logger.info(
        "PO %s tracking event %s (delayed=%s) -> %s", po.code, status, is_delayed, po.status.value
    )
    if is_delayed:
        _mail_delay(delayed_user, po, delay_reason)
    return ev


def scan_for_overdue(now: Optional[datetime] = None) -> List[DeliveryTracking]:
    """
    Đánh dấu trễ các PO quá ngày giao. Chạy lại nhiều lần không tạo thêm sự kiện
    khi sự kiện cuối cùng của PO đã là trễ.
    """
    now = now or datetime.utcnow()
    overdue = (
        PurchaseOrder.query.filter(
            PurchaseOrder.status.in_(_WATCHED),
            PurchaseOrder.delivery_date.isnot(None),
            PurchaseOrder.delivery_date < now,
        )
        .order_by(PurchaseOrder.id)
        .all()
    )

    created: List[DeliveryTracking] = []
    alerts = []
    for po in overdue:
        last = _last_event(po)
        if last is not None and last.is_delayed:
            continue
        ev = DeliveryTracking(
            po_id=po.id,
            status=DELAYED,
            note="Tự động phát hiện quá hạn",
            is_delayed=True,
            delay_reason=OVERDUE_REASON,
        )
        db.session.add(ev)
        db.session.flush()
        alerts.append((_notify_delay(po, OVERDUE_REASON), po))
        created.append(ev)

    _commit()
    logger.info("Overdue scan at %s: %d of %d POs flagged", now, len(created), len(overdue))
    for user, po in alerts:
        _mail_delay(user, po, OVERDUE_REASON)
    return created


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
