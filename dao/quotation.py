# dao/quotation.py
import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from configs import db
from db.models.quotation import Quotation, QuotationItem, QuotationStatus
from db.models.rfq import RFQStatus
from db.models.supplier import Supplier
from dao import rfq as rfq_dao, sequence
from utils.errors import (
    AlreadyExistsError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from utils.numbers import money, parse_datetime, to_decimal, to_id

logger = logging.getLogger(__name__)


# ======== Queries ========
def list_quotations() -> List[Quotation]:
    return Quotation.query.order_by(Quotation.id.desc()).all()


def list_for_rfq(rfq_id: int) -> List[Quotation]:
    return (
        Quotation.query.filter(Quotation.rfq_id == int(rfq_id))
        .order_by(Quotation.id)
        .all()
    )


def get_quotation(quotation_id: int) -> Quotation:
    q = db.session.get(Quotation, to_id(quotation_id, "quotation_id"))
    if not q:
        raise NotFoundError("Quotation", quotation_id)
    return q


# ======== Mutations ========
def _normalize_items(rfq, items: List[Dict]) -> List[Dict]:
    """qty > 0, đơn giá >= 0, vật tư phải có trong RFQ."""
    if not items:
        raise ValidationError("Báo giá phải có ít nhất 1 dòng.")
    allowed = {it.material_id for it in rfq.items}
    out: List[Dict] = []
    for idx, it in enumerate(items, 1):
        try:
            material_id = int(it["material_id"])
        except (KeyError, TypeError, ValueError):
            raise ValidationError(f"Dòng {idx}: thiếu hoặc sai material_id.", line=idx)
        if material_id not in allowed:
            raise ValidationError(
                f"Dòng {idx}: vật tư không có trong RFQ.", material_id=material_id
            )
        qty = to_decimal(it.get("quantity"), f"Dòng {idx}: quantity", positive=True)
        price = to_decimal(it.get("unit_price"), f"Dòng {idx}: unit_price")
        out.append(
            {
                "material_id": material_id,
                "quantity": qty,
                "unit_price": price,
                "amount": money(qty * price),
                "note": it.get("note"),
            }
        )
    return out


def submit_quotation(
    rfq_id: int,
    supplier_id: int,
    items: List[Dict],
    delivery_time=None,
    payment_terms: Optional[str] = None,
    valid_until=None,
    note: Optional[str] = None,
) -> Quotation:
    rfq = rfq_dao.get_rfq(rfq_id, lock=True)
    if rfq.status != RFQStatus.SENT:
        raise InvalidStateError("RFQ đã đóng, không nhận thêm báo giá.", rfq_id=rfq.id)

    supplier = db.session.get(Supplier, to_id(supplier_id, "supplier_id"))
    if not supplier:
        raise NotFoundError("Supplier", supplier_id)
    if any(q.supplier_id == supplier.id for q in rfq.quotations):
        raise AlreadyExistsError(
            "Nhà cung cấp đã gửi báo giá cho RFQ này.",
            rfq_id=rfq.id,
            supplier_id=supplier.id,
        )

    lines = _normalize_items(rfq, items)
    if delivery_time is not None and delivery_time != "":
        try:
            delivery_time = int(delivery_time)
        except (TypeError, ValueError):
            raise ValidationError("delivery_time phải là số ngày.", delivery_time=delivery_time)
    else:
        delivery_time = None

    q = Quotation(
        code=sequence.next_code(sequence.QUOTATION),
        rfq=rfq,
        supplier_id=supplier.id,
        delivery_time=delivery_time,
        payment_terms=payment_terms,
        valid_until=parse_datetime(valid_until, "valid_until"),
        note=note,
        status=QuotationStatus.PENDING,
    )
    for ln in lines:
        q.items.append(
            QuotationItem(
                material_id=ln["material_id"],
                quantity=ln["quantity"],
                unit_price=ln["unit_price"],
                amount=ln["amount"],
                note=ln["note"],
            )
        )
    q.total_amount = money(sum(ln["amount"] for ln in lines))
    db.session.add(q)
    _commit()
    logger.info(
        "Quotation %s submitted by supplier %s for RFQ %s (total %s)",
        q.code,
        supplier.code,
        rfq.code,
        q.total_amount,
    )
    return q


def select_quotation(quotation_id: int) -> Quotation:
    """Chọn 1 báo giá; các báo giá khác cùng RFQ bị từ chối, RFQ đóng lại."""
    target = get_quotation(quotation_id)
    rfq = rfq_dao.get_rfq(target.rfq_id, lock=True)

    # đã có PO từ 1 báo giá của RFQ thì không đổi lựa chọn nữa
    ordered = [q for q in rfq.quotations if q.po is not None]
    if ordered:
        raise InvalidStateError(
            "RFQ đã có đơn mua hàng, không thể đổi báo giá.",
            rfq_id=rfq.id,
            po_id=ordered[0].po.id,
        )

    for q in rfq.quotations:
        q.status = (
            QuotationStatus.SELECTED if q.id == target.id else QuotationStatus.REJECTED
        )
    rfq.status = RFQStatus.CLOSED
    _commit()
    logger.info(
        "Quotation %s selected for RFQ %s (%d rejected)",
        target.code,
        rfq.code,
        len(rfq.quotations) - 1,
    )
    return target


def compare(rfq_id: int) -> List[Dict]:
    """Bảng so sánh báo giá theo tổng tiền tăng dần."""
    rows = []
    for q in sorted(list_for_rfq(rfq_id), key=lambda x: (x.total_amount, x.id)):
        rows.append(
            {
                "quotation_id": q.id,
                "code": q.code,
                "supplier_id": q.supplier_id,
                "supplier_name": q.supplier.name,
                "total_amount": q.total_amount,
                "delivery_time": q.delivery_time,
                "status": q.status.value,
            }
        )
    return rows


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
