# dao/purchase.py
"""
Đơn mua hàng (PO) lập từ báo giá đã chọn, duyệt 3 cấp rồi gửi NCC.

Tổng tiền, VAT 10% và tổng cộng được chốt 1 lần lúc tạo PO; sửa dòng hàng
về sau không tính lại.
"""

import logging
from decimal import Decimal
from typing import List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from configs import db
from db.models.approval import ApprovalStatus
from db.models.purchase import PurchaseOrder, PurchaseOrderItem, POStatus
from db.models.quotation import QuotationStatus
from dao import (
    approval as approval_dao,
    notification as notification_dao,
    quotation as quotation_dao,
    sequence,
)
from utils.email import get_mailer
from utils.errors import (
    AlreadyExistsError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from utils.numbers import money, parse_datetime, to_id

logger = logging.getLogger(__name__)

VAT_RATE = Decimal("0.10")
DEFAULT_APPROVAL_LEVELS = 3

_OUTCOME_TO_STATUS = {
    ApprovalStatus.APPROVED: POStatus.APPROVED,
    ApprovalStatus.REJECTED: POStatus.REJECTED,
}

# trạng thái còn có thể hủy
_CANCELLABLE = (
    POStatus.PENDING,
    POStatus.APPROVED,
    POStatus.SENT,
    POStatus.IN_TRANSIT,
    POStatus.DELIVERED,
)


def _to_po_status(value) -> POStatus:
    if isinstance(value, POStatus):
        return value
    try:
        return POStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError("status không hợp lệ.", status=value)


def _approval_levels() -> int:
    return int(current_app.config.get("APPROVAL_LEVELS", DEFAULT_APPROVAL_LEVELS))


# ======== Queries ========
def list_purchase_orders(status=None, project_id=None) -> List[PurchaseOrder]:
    q = PurchaseOrder.query
    if status:
        q = q.filter(PurchaseOrder.status == _to_po_status(status))
    if project_id:
        q = q.filter(PurchaseOrder.project_id == int(project_id))
    return q.order_by(PurchaseOrder.id.desc()).all()


def get_po(po_id: int, lock: bool = False) -> PurchaseOrder:
    po = db.session.get(PurchaseOrder, to_id(po_id, "po_id"), with_for_update=lock)
    if not po:
        raise NotFoundError("PurchaseOrder", po_id)
    return po


def request_creator_id(po: PurchaseOrder) -> Optional[int]:
    """Người tạo yêu cầu vật tư gốc (nhận thông báo giao hàng)."""
    rfq = po.quotation.rfq if po.quotation else None
    if rfq is None or rfq.request is None:
        return None
    return rfq.request.created_by_id


# ======== Mutations ========
def create_from_quotation(
    quotation_id: int,
    delivery_address: Optional[str] = None,
    delivery_date=None,
    note: Optional[str] = None,
    created_by_id: Optional[int] = None,
) -> PurchaseOrder:
    quotation = quotation_dao.get_quotation(quotation_id)
    if quotation.status != QuotationStatus.SELECTED:
        raise InvalidStateError(
            "Chỉ tạo PO từ báo giá đã được chọn.", status=quotation.status.value
        )
    if quotation.po is not None:
        raise AlreadyExistsError(
            "Báo giá này đã có đơn mua hàng.", po_id=quotation.po.id
        )

    total = money(quotation.total_amount)
    vat = money(total * VAT_RATE)

    po = PurchaseOrder(
        code=sequence.next_code(sequence.PURCHASE_ORDER),
        quotation=quotation,
        project_id=quotation.rfq.request.project_id,
        supplier_id=quotation.supplier_id,
        status=POStatus.PENDING,
        total_amount=total,
        vat_amount=vat,
        grand_total=money(total + vat),
        delivery_address=delivery_address,
        delivery_date=parse_datetime(delivery_date, "delivery_date"),
        payment_terms=quotation.payment_terms,
        note=note,
        created_by_id=int(created_by_id) if created_by_id else None,
    )
    db.session.add(po)
    for it in quotation.items:
        po.items.append(
            PurchaseOrderItem(
                material_id=it.material_id,
                quantity=it.quantity,
                unit_price=it.unit_price,
                amount=it.amount,
            )
        )
    approval_dao.initialize(po, _approval_levels())
    _commit()
    logger.info(
        "PO %s created from quotation %s (grand total %s)",
        po.code,
        quotation.code,
        po.grand_total,
    )
    return po


def act_on_approval(
    po_id: int,
    acting_user_id: int,
    decision,
    comment: Optional[str] = None,
    signature: Optional[str] = None,
    can_act=None,
):
    po = get_po(po_id, lock=True)
    if po.status == POStatus.CANCELLED:
        raise InvalidStateError(
            "Đơn hàng đã bị hủy, không thể duyệt.", status=po.status.value, po_id=po.id
        )
    approval, outcome = approval_dao.act_on_next_pending(
        po, acting_user_id, decision, comment, signature, can_act=can_act
    )

    new_status = _OUTCOME_TO_STATUS.get(outcome)
    if new_status is not None and po.status == POStatus.PENDING:
        po.status = new_status
        logger.info("PO %s -> %s", po.code, new_status.value)
        if new_status == POStatus.APPROVED:
            notification_dao.notify(
                po.created_by_id,
                "Đơn hàng đã được duyệt",
                f"Đơn hàng {po.code} đã được duyệt đủ {len(po.approvals)} cấp",
                notification_dao.SUCCESS,
                f"/purchase-orders/{po.id}",
            )
        else:
            notification_dao.notify(
                po.created_by_id,
                "Đơn hàng bị từ chối",
                f"Đơn hàng {po.code} bị từ chối ở cấp {approval.level}",
                notification_dao.ERROR,
                f"/purchase-orders/{po.id}",
            )

    _commit()
    return approval


def send_po(po_id: int) -> PurchaseOrder:
    """approved -> sent; gửi mail xác nhận cho NCC (lỗi mail chỉ log)."""
    po = get_po(po_id, lock=True)
    if po.status != POStatus.APPROVED:
        raise InvalidStateError(
            "Chỉ gửi được đơn hàng đã duyệt.", status=po.status.value
        )
    po.status = POStatus.SENT
    _commit()
    logger.info("PO %s sent to supplier %s", po.code, po.supplier.code)

    try:
        get_mailer().send_po_confirmation(po.supplier, po)
    except Exception:
        logger.exception("Failed to e-mail PO %s to supplier %s", po.code, po.supplier.code)
    return po


def cancel_po(po_id: int, reason: Optional[str] = None) -> PurchaseOrder:
    po = get_po(po_id, lock=True)
    if po.status not in _CANCELLABLE:
        raise InvalidStateError(
            "Không thể hủy đơn hàng ở trạng thái này.", status=po.status.value
        )
    po.status = POStatus.CANCELLED
    if reason:
        po.note = f"{po.note}\n{reason}" if po.note else reason
    _commit()
    logger.info("PO %s cancelled", po.code)
    return po


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
