# dao/payment.py
"""
Ủy nhiệm chi (UNC) cho PO, do kế toán trưởng duyệt.

Thanh toán trả sau (postpay) bắt buộc có biên bản giao nhận và hóa đơn VAT.
Duyệt xong thì UNC chuyển thẳng sang PAID và PO hoàn tất.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from configs import db
from db.models.payment import Payment, PaymentMethod, PaymentStatus, PaymentType
from db.models.purchase import POStatus
from db.models.user import User, UserRole
from dao import notification as notification_dao, purchase as purchase_dao, sequence
from utils.errors import (
    AlreadyExistsError,
    AlreadyProcessedError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from utils.numbers import money, to_decimal

logger = logging.getLogger(__name__)

DOC_DELIVERY = "Biên bản giao nhận"
DOC_VAT_INVOICE = "Hóa đơn VAT"

_PAYABLE = (POStatus.APPROVED, POStatus.SENT, POStatus.IN_TRANSIT, POStatus.DELIVERED)

_DECISIONS = {"approved": True, "approve": True, "rejected": False, "reject": False}


def _to_enum(enum_cls, value, default, field):
    if isinstance(value, enum_cls):
        return value
    if not value:
        return default
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"{field} không hợp lệ.", **{field: value})


# ======== Queries ========
def get_payment(payment_id: int, lock: bool = False) -> Payment:
    p = db.session.get(Payment, int(payment_id), with_for_update=lock)
    if not p:
        raise NotFoundError("Payment", payment_id)
    return p


def get_payment_for_po(po_id: int) -> Optional[Payment]:
    return Payment.query.filter_by(po_id=int(po_id)).first()


def list_payments(status=None) -> List[Payment]:
    q = Payment.query
    if status:
        q = q.filter(Payment.status == _to_enum(PaymentStatus, status, None, "status"))
    return q.order_by(Payment.id.desc()).all()


def check_documents(po_id: int, payment_type=None, vat_invoice_file: Optional[str] = None) -> Dict:
    """Liệt kê chứng từ cần có; không ghi gì."""
    po = purchase_dao.get_po(po_id)
    ptype = _to_enum(PaymentType, payment_type, PaymentType.POSTPAY, "payment_type")
    required = ptype == PaymentType.POSTPAY
    documents = {
        "po": {"name": "Đơn đặt hàng (PO)", "exists": True, "required": True},
        "delivery": {
            "name": DOC_DELIVERY,
            "exists": po.delivery is not None,
            "required": required,
        },
        "vat_invoice": {
            "name": DOC_VAT_INVOICE,
            "exists": bool(vat_invoice_file),
            "required": required,
        },
    }
    missing = [d["name"] for d in documents.values() if d["required"] and not d["exists"]]
    return {
        "can_proceed": not missing,
        "documents": documents,
        "missing_required": missing,
        "message": "Đủ chứng từ để thanh toán" if not missing else f"Thiếu: {', '.join(missing)}",
    }


# ======== Mutations ========
def create_payment(
    po_id: int,
    amount=None,
    method=None,
    payment_type=None,
    invoice_number: Optional[str] = None,
    vat_invoice_file: Optional[str] = None,
    delivery_note: Optional[str] = None,
    acceptance_note: Optional[str] = None,
    note: Optional[str] = None,
    created_by_id: Optional[int] = None,
) -> Payment:
    po = purchase_dao.get_po(po_id, lock=True)
    if po.payment is not None:
        raise AlreadyExistsError("Đơn hàng đã có ủy nhiệm chi.", payment_id=po.payment.id)
    if po.status not in _PAYABLE:
        raise InvalidStateError(
            "Đơn hàng chưa được duyệt hoặc đã kết thúc.", status=po.status.value
        )

    ptype = _to_enum(PaymentType, payment_type, PaymentType.POSTPAY, "payment_type")
    pmethod = _to_enum(PaymentMethod, method, PaymentMethod.BANK_TRANSFER, "method")

    check = check_documents(po.id, ptype, vat_invoice_file)
    if not check["can_proceed"]:
        raise ValidationError(
            f"Không thể thanh toán vì thiếu: {', '.join(check['missing_required'])}",
            missing_documents=check["missing_required"],
        )

    if amount is None or amount == "":
        value = money(po.grand_total)
    else:
        value = money(to_decimal(amount, "amount", positive=True))
    if value > money(po.grand_total):
        raise ValidationError(
            "Số tiền thanh toán vượt tổng giá trị đơn hàng.",
            amount=value,
            grand_total=po.grand_total,
        )

    p = Payment(
        po=po,
        unc_number=sequence.next_code(sequence.PAYMENT),
        amount=value,
        method=pmethod,
        type=ptype,
        status=PaymentStatus.PENDING,
        invoice_number=invoice_number,
        vat_invoice_file=vat_invoice_file,
        delivery_note=delivery_note or "Đã có biên bản giao nhận",
        acceptance_note=acceptance_note or "Đã nghiệm thu đạt yêu cầu",
        note=note,
        created_by_id=int(created_by_id) if created_by_id else None,
    )
    db.session.add(p)
    db.session.flush()

    accountants = User.query.filter_by(role=UserRole.ACCOUNTANT, is_active=True).all()
    for u in accountants:
        notification_dao.notify(
            u.id,
            "Yêu cầu thanh toán mới",
            f"Ủy nhiệm chi {p.unc_number} cho PO {po.code} cần phê duyệt",
            notification_dao.INFO,
            f"/purchase-orders/{po.id}",
        )
    _commit()
    logger.info("Payment %s created for PO %s (%s %s)", p.unc_number, po.code, ptype.value, value)
    return p


def approve_payment(payment_id: int, approver_id: int, decision, note: Optional[str] = None) -> Payment:
    approve = _DECISIONS.get(str(decision or "").strip().lower())
    if approve is None:
        raise ValidationError(
            "Quyết định phải là 'approved' hoặc 'rejected'.", decision=str(decision)
        )

    p = get_payment(payment_id, lock=True)
    if p.status != PaymentStatus.PENDING:
        raise AlreadyProcessedError(
            "Ủy nhiệm chi đã được xử lý.", status=p.status.value, payment_id=p.id
        )

    now = datetime.utcnow()
    p.approved_by_id = int(approver_id)
    p.approved_at = now
    if note:
        p.note = note
    if approve:
        p.status = PaymentStatus.PAID
        p.paid_at = now
        p.po.status = POStatus.COMPLETED
    else:
        p.status = PaymentStatus.CANCELLED

    notification_dao.notify(
        p.created_by_id,
        "Ủy nhiệm chi đã được xử lý",
        f"Ủy nhiệm chi {p.unc_number}: {p.status.value}",
        notification_dao.SUCCESS if approve else notification_dao.ERROR,
        f"/purchase-orders/{p.po_id}",
    )
    _commit()
    logger.info("Payment %s -> %s by user %s", p.unc_number, p.status.value, approver_id)
    return p


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
