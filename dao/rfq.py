# dao/rfq.py
import logging
from decimal import Decimal
from typing import Dict, List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from configs import db
from db.models.rfq import RFQ, RFQItem, RFQInvitation, RFQStatus
from db.models.supplier import Supplier
from db.models.material_request import MaterialRequest, RequestStatus
from dao import material_request as request_dao, sequence
from utils.email import get_mailer
from utils.errors import (
    AllFulfillableFromStockError,
    AlreadyExistsError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from utils.numbers import parse_datetime, to_id

logger = logging.getLogger(__name__)

DEFAULT_MIN_SUPPLIERS = 2

# RFQ có thể lập khi yêu cầu đã duyệt, hoặc đang xử lý (đã xuất kho 1 phần)
_RFQ_ALLOWED_REQUEST_STATUS = (RequestStatus.APPROVED, RequestStatus.PROCESSING)


def _d(x) -> Decimal:
    return Decimal(str(x or 0))


def _min_suppliers() -> int:
    return int(current_app.config.get("RFQ_MIN_SUPPLIERS", DEFAULT_MIN_SUPPLIERS))


# -------- queries --------
def list_rfqs() -> List[RFQ]:
    return RFQ.query.order_by(RFQ.id.desc()).all()


def get_rfq(rfq_id: int, lock: bool = False) -> RFQ:
    r = db.session.get(RFQ, to_id(rfq_id, "rfq_id"), with_for_update=lock)
    if not r:
        raise NotFoundError("RFQ", rfq_id)
    return r


def _shortfall(req: MaterialRequest) -> List[Dict]:
    rows = []
    for it in req.items:
        stock = _d(it.material.stock)
        requested = _d(it.quantity)
        rows.append(
            {
                "material_id": it.material_id,
                "material_code": it.material.code,
                "material_name": it.material.name,
                "unit": it.material.unit,
                "requested": requested,
                "stock": stock,
                "need_purchase": max(Decimal("0"), requested - stock),
                "can_fulfill_from_stock": stock >= requested,
            }
        )
    return rows


def stock_preview(request_id: int) -> Dict:
    """Tóm tắt trước khi lập RFQ: nên tạo RFQ hay xuất kho nội bộ."""
    req = request_dao.get_request(request_id)
    rows = _shortfall(req)
    all_can_fulfill = all(r["can_fulfill_from_stock"] for r in rows)
    return {
        "request_id": req.id,
        "request_code": req.code,
        "items": rows,
        "summary": {
            "all_can_fulfill": all_can_fulfill,
            "total_need_purchase": sum((r["need_purchase"] for r in rows), Decimal("0")),
            "should_create_rfq": not all_can_fulfill,
            "should_issue_from_stock": all_can_fulfill,
        },
    }


def compute_need_purchase(request_id: int) -> List[Dict]:
    """Chỉ các dòng cần mua (yêu cầu - tồn > 0); rỗng -> AllFulfillableFromStockError."""
    req = request_dao.get_request(request_id)
    need = [r for r in _shortfall(req) if r["need_purchase"] > 0]
    if not need:
        raise AllFulfillableFromStockError(req.id)
    return need


# -------- mutations --------
def _normalize_supplier_ids(supplier_ids) -> List[int]:
    out: List[int] = []
    for sid in supplier_ids or []:
        try:
            sid = int(sid)
        except (TypeError, ValueError):
            raise ValidationError("supplier_id không hợp lệ.", supplier_id=sid)
        if sid not in out:
            out.append(sid)
    min_count = _min_suppliers()
    if len(out) < min_count:
        raise ValidationError(
            f"Cần mời ít nhất {min_count} nhà cung cấp để so sánh báo giá.",
            supplier_count=len(out),
            min_suppliers=min_count,
        )
    return out


def create_rfq(
    request_id: int,
    supplier_ids,
    deadline,
    description: Optional[str] = None,
    created_by_id: Optional[int] = None,
) -> RFQ:
    # validate toàn bộ đầu vào trước khi ghi bất cứ thứ gì
    supplier_ids = _normalize_supplier_ids(supplier_ids)
    deadline = parse_datetime(deadline, "deadline", required=True)

    req = request_dao.get_request(request_id, lock=True)
    if req.status not in _RFQ_ALLOWED_REQUEST_STATUS:
        raise InvalidStateError(
            "Chỉ có thể tạo RFQ từ yêu cầu đã được duyệt.", status=req.status.value
        )
    if req.rfq is not None:
        raise AlreadyExistsError("Yêu cầu này đã có RFQ.", rfq_id=req.rfq.id)

    suppliers = Supplier.query.filter(Supplier.id.in_(supplier_ids)).all()
    found = {s.id for s in suppliers}
    for sid in supplier_ids:
        if sid not in found:
            raise NotFoundError("Supplier", sid)
    inactive = [s.id for s in suppliers if not s.is_active]
    if inactive:
        # NCC ngừng hoạt động không được tính vào số NCC tối thiểu
        raise ValidationError(
            "Không thể mời nhà cung cấp đã ngừng hoạt động.", inactive_supplier_ids=sorted(inactive)
        )

    need = compute_need_purchase(req.id)

    text = description or req.description or ""
    text += "\n\nPhân tích tồn kho:\n"
    for r in need:
        text += (
            f"- {r['material_name']}: Yêu cầu {r['requested']}, "
            f"Tồn kho {r['stock']} -> Cần mua {r['need_purchase']}\n"
        )

    rfq = RFQ(
        code=sequence.next_code(sequence.RFQ),
        request_id=req.id,
        title=f"Yêu cầu báo giá - {req.project.name}",
        description=text.strip(),
        deadline=deadline,
        status=RFQStatus.SENT,
        created_by_id=int(created_by_id) if created_by_id else None,
    )
    for r in need:
        rfq.items.append(
            RFQItem(
                material_id=r["material_id"],
                quantity=r["need_purchase"],  # chỉ phần thiếu, không phải số yêu cầu
                note=f"Yêu cầu: {r['requested']}, Tồn kho: {r['stock']}",
            )
        )
    by_id = {s.id: s for s in suppliers}
    for sid in supplier_ids:
        rfq.invitations.append(RFQInvitation(supplier=by_id[sid]))
    db.session.add(rfq)

    req.status = RequestStatus.PROCESSING
    _commit()
    logger.info(
        "RFQ %s created for request %s (%d items, %d suppliers)",
        rfq.code,
        req.code,
        len(need),
        len(supplier_ids),
    )

    _send_invitations(rfq)
    return rfq


def _send_invitations(rfq: RFQ) -> None:
    """Gửi mail từng NCC; lỗi của 1 NCC không ảnh hưởng NCC khác hay RFQ."""
    mailer = get_mailer()
    sent_any = False
    for inv in rfq.invitations:
        try:
            mailer.send_rfq_invitation(inv.supplier, rfq)
        except Exception:
            logger.exception(
                "Failed to send RFQ %s to supplier %s", rfq.code, inv.supplier.code
            )
            continue
        inv.email_sent = True
        sent_any = True
    if sent_any:
        try:
            _commit()
        except SQLAlchemyError:
            logger.exception("Failed to record RFQ %s invitation status", rfq.code)


def close_rfq(rfq_id: int) -> RFQ:
    rfq = get_rfq(rfq_id, lock=True)
    rfq.status = RFQStatus.CLOSED
    _commit()
    return rfq


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
