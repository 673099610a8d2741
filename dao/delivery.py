# dao/delivery.py
import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from configs import db
from db.models.delivery import Delivery, QualityStatus
from db.models.purchase import POStatus
from dao import notification as notification_dao, purchase as purchase_dao
from utils.errors import AlreadyExistsError, InvalidStateError, ValidationError
from utils.numbers import parse_datetime, to_decimal

logger = logging.getLogger(__name__)

_DELIVERABLE = (POStatus.APPROVED, POStatus.SENT, POStatus.IN_TRANSIT, POStatus.DELIVERED)


def _to_quality(value) -> QualityStatus:
    if isinstance(value, QualityStatus):
        return value
    if not value:
        return QualityStatus.OK
    try:
        return QualityStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError("quality_status không hợp lệ.", quality_status=value)


def _normalize_quantities(po, actual_quantity: Optional[Dict]) -> Dict[str, str]:
    """{material_id: qty} -> JSON; mặc định = số lượng đặt trên PO."""
    ordered = {it.material_id: it.quantity for it in po.items}
    if not actual_quantity:
        return {str(k): str(v) for k, v in ordered.items()}
    out = {}
    for key, qty in actual_quantity.items():
        try:
            material_id = int(key)
        except (TypeError, ValueError):
            raise ValidationError("material_id không hợp lệ.", material_id=key)
        if material_id not in ordered:
            raise ValidationError("Vật tư không có trong đơn hàng.", material_id=material_id)
        out[str(material_id)] = str(to_decimal(qty, f"actual_quantity[{material_id}]"))
    return out


def get_delivery_for_po(po_id: int) -> Optional[Delivery]:
    return Delivery.query.filter_by(po_id=int(po_id)).first()


def create_delivery(
    po_id: int,
    received_by: str,
    actual_quantity: Optional[Dict] = None,
    quality_status=None,
    delivery_date=None,
    photos: Optional[List[str]] = None,
    note: Optional[str] = None,
) -> Delivery:
    """Biên bản giao nhận; PO chuyển sang delivered."""
    if not (received_by or "").strip():
        raise ValidationError("Thiếu người nhận hàng.", field="received_by")

    po = purchase_dao.get_po(po_id, lock=True)
    if po.status not in _DELIVERABLE:
        raise InvalidStateError(
            "Đơn hàng chưa thể giao nhận ở trạng thái này.", status=po.status.value
        )
    if po.delivery is not None:
        raise AlreadyExistsError("Đơn hàng đã có biên bản giao nhận.", delivery_id=po.delivery.id)

    d = Delivery(
        po=po,
        delivery_date=parse_datetime(delivery_date, "delivery_date") or datetime.utcnow(),
        received_by=received_by.strip(),
        actual_quantity=_normalize_quantities(po, actual_quantity),
        quality_status=_to_quality(quality_status),
        photos=photos or [],
        note=note,
    )
    db.session.add(d)

    po.status = POStatus.DELIVERED
    po.actual_delivery = d.delivery_date
    notification_dao.notify(
        po.created_by_id,
        "Đã giao hàng",
        f"Đơn hàng {po.code} đã giao, chất lượng: {d.quality_status.value}",
        notification_dao.SUCCESS
        if d.quality_status == QualityStatus.OK
        else notification_dao.WARNING,
        f"/purchase-orders/{po.id}",
    )
    _commit()
    logger.info("Delivery recorded for PO %s (quality %s)", po.code, d.quality_status.value)
    return d


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
