# dao/evaluation.py
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional
import logging

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from configs import db
from db.models.evaluation import SupplierEvaluation
from db.models.purchase import POStatus
from db.models.supplier import Supplier
from dao import purchase as purchase_dao
from utils.errors import InvalidStateError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

SCORE_FIELDS = ("price_score", "quality_score", "delivery_score", "support_score")
_EVALUABLE = (POStatus.DELIVERED, POStatus.COMPLETED)
_TWO = Decimal("0.01")


def _score(value, field: str) -> int:
    try:
        v = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} phải là số nguyên 1-5.", field=field, value=value)
    if v < 1 or v > 5:
        raise ValidationError(f"{field} phải nằm trong khoảng 1-5.", field=field, value=value)
    return v


def list_for_supplier(supplier_id: int) -> List[SupplierEvaluation]:
    if not db.session.get(Supplier, int(supplier_id)):
        raise NotFoundError("Supplier", supplier_id)
    return (
        SupplierEvaluation.query.filter_by(supplier_id=int(supplier_id))
        .order_by(SupplierEvaluation.created_at.desc(), SupplierEvaluation.id.desc())
        .all()
    )


def create_evaluation(
    po_id: int,
    evaluator_id: int,
    price_score,
    quality_score,
    delivery_score,
    support_score,
    comment: Optional[str] = None,
) -> SupplierEvaluation:
    """Chấm điểm NCC sau khi nhận hàng; rating NCC = trung bình các lần chấm."""
    po = purchase_dao.get_po(po_id)
    if po.status not in _EVALUABLE:
        raise InvalidStateError(
            "Chỉ đánh giá NCC sau khi đơn hàng đã giao.", status=po.status.value
        )

    raw = dict(
        price_score=price_score,
        quality_score=quality_score,
        delivery_score=delivery_score,
        support_score=support_score,
    )
    scores = {f: _score(raw[f], f) for f in SCORE_FIELDS}
    avg = (Decimal(sum(scores.values())) / len(scores)).quantize(_TWO, rounding=ROUND_HALF_UP)

    ev = SupplierEvaluation(
        supplier_id=po.supplier_id,
        po_id=po.id,
        evaluator_id=int(evaluator_id),
        avg_score=avg,
        comment=comment,
        **scores,
    )
    db.session.add(ev)
    db.session.flush()

    supplier = db.session.get(Supplier, po.supplier_id, with_for_update=True)
    mean = (
        db.session.query(func.avg(SupplierEvaluation.avg_score))
        .filter(SupplierEvaluation.supplier_id == supplier.id)
        .scalar()
    )
    supplier.rating = Decimal(str(mean or 0)).quantize(_TWO, rounding=ROUND_HALF_UP)
    _commit()
    logger.info(
        "Supplier %s evaluated on PO %s: %s (rating %s)", supplier.code, po.code, avg, supplier.rating
    )
    return ev


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
