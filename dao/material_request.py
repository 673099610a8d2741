# dao/material_request.py
"""
Yêu cầu vật tư: tạo mới (kèm N cấp duyệt PENDING) và đi qua chuỗi duyệt.

Khi chuỗi duyệt chuyển sang APPROVED, used_quantity của định mức được cộng
đúng 1 lần trong cùng giao dịch.
"""

import logging
from typing import Dict, List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from configs import db
from db.models.approval import ApprovalStatus
from db.models.material import Material
from db.models.project import Project
from db.models.material_request import (
    MaterialRequest,
    RequestItem,
    RequestPriority,
    RequestStatus,
)
from dao import (
    approval as approval_dao,
    notification as notification_dao,
    quota as quota_dao,
    sequence,
)
from utils.errors import NotFoundError, ValidationError
from utils.numbers import parse_datetime, to_decimal, to_id

logger = logging.getLogger(__name__)

DEFAULT_APPROVAL_LEVELS = 3

_OUTCOME_TO_STATUS = {
    ApprovalStatus.APPROVED: RequestStatus.APPROVED,
    ApprovalStatus.REJECTED: RequestStatus.REJECTED,
}


def _approval_levels() -> int:
    try:
        return int(current_app.config.get("APPROVAL_LEVELS", DEFAULT_APPROVAL_LEVELS))
    except RuntimeError:
        return DEFAULT_APPROVAL_LEVELS


def _to_priority(value) -> RequestPriority:
    if isinstance(value, RequestPriority):
        return value
    if not value:
        return RequestPriority.NORMAL
    try:
        return RequestPriority(str(value).strip().lower())
    except ValueError:
        raise ValidationError("priority không hợp lệ.", priority=value)


def _normalize_items(items: List[Dict]) -> List[Dict]:
    """material_id bắt buộc và tồn tại, quantity > 0."""
    if not items:
        raise ValidationError("Vui lòng nhập ít nhất 1 dòng vật tư.")
    out: List[Dict] = []
    for idx, it in enumerate(items, 1):
        try:
            material_id = int(it["material_id"])
        except (KeyError, TypeError, ValueError):
            raise ValidationError(f"Dòng {idx}: thiếu hoặc sai material_id.", line=idx)
        if not db.session.get(Material, material_id):
            raise NotFoundError("Material", material_id)
        qty = to_decimal(it.get("quantity"), f"Dòng {idx}: quantity", positive=True)
        out.append({"material_id": material_id, "quantity": qty, "note": it.get("note")})
    return out


# ======== Queries ========
def list_requests(project_id=None, status=None) -> List[MaterialRequest]:
    q = MaterialRequest.query
    if project_id:
        q = q.filter(MaterialRequest.project_id == int(project_id))
    if status:
        try:
            status = RequestStatus(str(status).strip().lower())
        except ValueError:
            raise ValidationError("status không hợp lệ.", status=status)
        q = q.filter(MaterialRequest.status == status)
    return q.order_by(MaterialRequest.id.desc()).all()


def get_request(request_id: int, lock: bool = False) -> MaterialRequest:
    req = db.session.get(MaterialRequest, to_id(request_id, "request_id"), with_for_update=lock)
    if not req:
        raise NotFoundError("MaterialRequest", request_id)
    return req


# ======== Mutations ========
def create_request(
    project_id: int,
    created_by_id: int,
    items: List[Dict],
    description: Optional[str] = None,
    priority=None,
    need_by_date=None,
) -> MaterialRequest:
    if not db.session.get(Project, to_id(project_id, "project_id")):
        raise NotFoundError("Project", project_id)
    norm_items = _normalize_items(items)

    req = MaterialRequest(
        code=sequence.next_code(sequence.REQUEST),
        project_id=int(project_id),
        created_by_id=int(created_by_id),
        description=description,
        priority=_to_priority(priority),
        need_by_date=parse_datetime(need_by_date, "need_by_date"),
        status=RequestStatus.PENDING,
    )
    for it in norm_items:
        req.items.append(
            RequestItem(
                material_id=it["material_id"], quantity=it["quantity"], note=it["note"]
            )
        )
    approval_dao.initialize(req, _approval_levels())
    db.session.add(req)
    _commit()
    logger.info(
        "Request %s created by user %s (%d items)", req.code, created_by_id, len(norm_items)
    )
    return req


def act_on_approval(
    request_id: int,
    acting_user_id: int,
    decision,
    comment: Optional[str] = None,
    signature: Optional[str] = None,
    can_act=None,
):
    """Duyệt/từ chối cấp đang chờ; đồng bộ status và ghi định mức khi duyệt đủ."""
    req = get_request(request_id, lock=True)
    approval, outcome = approval_dao.act_on_next_pending(
        req, acting_user_id, decision, comment, signature, can_act=can_act
    )

    new_status = _OUTCOME_TO_STATUS.get(outcome)
    if new_status is not None and req.status == RequestStatus.PENDING:
        req.status = new_status
        if new_status == RequestStatus.APPROVED:
            quota_dao.commit_usage(req)
        logger.info("Request %s -> %s", req.code, new_status.value)
        notification_dao.notify(
            req.created_by_id,
            f"Yêu cầu {req.code}: {new_status.value}",
            f"Yêu cầu vật tư {req.code} đã kết thúc duyệt ở cấp {approval.level}",
            notification_dao.SUCCESS
            if new_status == RequestStatus.APPROVED
            else notification_dao.ERROR,
            f"/requests/{req.id}",
        )

    _commit()
    return approval


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
