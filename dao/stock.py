# dao/stock.py
"""
Tồn kho và xuất kho nội bộ.

Xuất kho gồm 2 bước:
  1. ``issue_stock``     : thủ kho lập phiếu XK (PENDING), CHƯA trừ tồn.
  2. ``confirm_receipt`` : giám sát xác nhận đã nhận -> mới trừ Material.stock.

Trong khoảng giữa 2 bước, hàng đang trên đường nhưng vẫn được tính là tồn;
``reserved_quantity`` cho biết lượng đang nằm trên các phiếu PENDING.
"""

import logging
from collections import OrderedDict
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from configs import db
from db.models.material import Material
from db.models.material_request import MaterialRequest, RequestStatus
from db.models.stock_issue import StockIssue, StockIssueItem, StockIssueStatus
from dao import material_request as request_dao, sequence
from utils.errors import (
    AlreadyExistsError,
    AlreadyProcessedError,
    InsufficientStockError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from utils.numbers import to_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _d(x) -> Decimal:
    return Decimal(str(x or 0))


# ---------- queries ----------
def list_issues() -> List[StockIssue]:
    return StockIssue.query.order_by(StockIssue.id.desc()).all()


def get_issue(issue_id: int, lock: bool = False) -> StockIssue:
    issue = db.session.get(StockIssue, int(issue_id), with_for_update=lock)
    if not issue:
        raise NotFoundError("StockIssue", issue_id)
    return issue


def get_issue_for_request(request_id: int) -> Optional[StockIssue]:
    return StockIssue.query.filter_by(request_id=int(request_id)).first()


def reserved_quantity(material_id: int) -> Decimal:
    """Lượng vật tư đang nằm trên các phiếu xuất kho chưa được xác nhận."""
    total = (
        db.session.query(func.coalesce(func.sum(StockIssueItem.quantity), 0))
        .join(StockIssue, StockIssue.id == StockIssueItem.issue_id)
        .filter(
            StockIssue.status == StockIssueStatus.PENDING,
            StockIssueItem.material_id == int(material_id),
        )
        .scalar()
    )
    return _d(total)


def analyze_request(req: MaterialRequest) -> Dict:
    analysis = {
        "request_id": req.id,
        "request_code": req.code,
        "can_fulfill_fully": True,
        "can_fulfill_partially": False,
        "items": [],
    }
    for it in req.items:
        available = _d(it.material.stock)
        requested = _d(it.quantity)
        can_fulfill = available >= requested
        fulfill_quantity = min(available, requested)
        need_to_buy = max(ZERO, requested - available)

        analysis["items"].append(
            {
                "material_id": it.material_id,
                "material_code": it.material.code,
                "material_name": it.material.name,
                "unit": it.material.unit,
                "requested": requested,
                "available": available,
                "reserved": reserved_quantity(it.material_id),
                "can_fulfill": can_fulfill,
                "fulfill_quantity": fulfill_quantity,
                "need_to_buy": need_to_buy,
            }
        )
        if not can_fulfill:
            analysis["can_fulfill_fully"] = False
        if fulfill_quantity > 0:
            analysis["can_fulfill_partially"] = True
    return analysis


def analyze(request_id: int) -> Dict:
    """Phân tích tồn kho cho yêu cầu. Chỉ đọc, không thay đổi tồn."""
    return analyze_request(request_dao.get_request(request_id))


# ---------- mutations ----------
def _normalize_issue_items(req: MaterialRequest, items: Optional[List[Dict]]):
    requested = OrderedDict()
    for it in req.items:
        requested[it.material_id] = requested.get(it.material_id, ZERO) + _d(it.quantity)

    if items is None:
        # mặc định: xuất phần đáp ứng được từ kho
        items = [
            {"material_id": x["material_id"], "quantity": x["fulfill_quantity"]}
            for x in analyze_request(req)["items"]
            if x["fulfill_quantity"] > 0
        ]
    if not items:
        raise ValidationError("Không có vật tư nào để xuất kho.")

    totals = OrderedDict()
    notes = {}
    for idx, it in enumerate(items, 1):
        try:
            material_id = int(it["material_id"])
        except (KeyError, TypeError, ValueError):
            raise ValidationError(f"Dòng {idx}: thiếu hoặc sai material_id.", line=idx)
        if material_id not in requested:
            raise ValidationError(
                f"Dòng {idx}: vật tư không có trong yêu cầu.", material_id=material_id
            )
        qty = to_decimal(it.get("quantity"), f"Dòng {idx}: quantity", positive=True)
        totals[material_id] = totals.get(material_id, ZERO) + qty
        if it.get("note"):
            notes[material_id] = it["note"]

    for material_id, qty in totals.items():
        if qty > requested[material_id]:
            raise ValidationError(
                "Số lượng xuất vượt số lượng yêu cầu.",
                material_id=material_id,
                requested=requested[material_id],
                issue=qty,
            )
    return totals, notes


def issue_stock(
    request_id: int, items: Optional[List[Dict]], issuer_id: int, note: Optional[str] = None
) -> StockIssue:
    req = request_dao.get_request(request_id, lock=True)
    if req.status != RequestStatus.APPROVED:
        raise InvalidStateError(
            "Yêu cầu phải được duyệt trước khi xuất kho.", status=req.status.value
        )
    if get_issue_for_request(req.id):
        raise AlreadyExistsError(
            "Yêu cầu này đã có phiếu xuất kho.", request_id=req.id
        )

    totals, notes = _normalize_issue_items(req, items)

    for material_id, qty in totals.items():
        material = db.session.get(Material, material_id)
        if not material:
            raise NotFoundError("Material", material_id)
        if _d(material.stock) < qty:
            raise InsufficientStockError(material.id, material.name, _d(material.stock), qty)

    issue = StockIssue(
        code=sequence.next_code(sequence.STOCK_ISSUE),
        request_id=req.id,
        issued_by_id=int(issuer_id),
        note=note,
        status=StockIssueStatus.PENDING,
        issued_at=datetime.utcnow(),
    )
    for material_id, qty in totals.items():
        issue.items.append(
            StockIssueItem(material_id=material_id, quantity=qty, note=notes.get(material_id))
        )
    db.session.add(issue)

    # KHÔNG trừ tồn ở đây, chờ giám sát xác nhận
    req.status = RequestStatus.PROCESSING
    _commit()
    logger.info("Stock issue %s created for request %s", issue.code, req.code)
    return issue


def confirm_receipt(issue_id: int, receiver_id: int, note: Optional[str] = None) -> StockIssue:
    issue = get_issue(issue_id, lock=True)
    if issue.status != StockIssueStatus.PENDING:
        raise AlreadyProcessedError(
            "Phiếu xuất kho đã được xử lý.", status=issue.status.value, issue_id=issue.id
        )

    # tồn có thể đã bị phiếu khác tiêu thụ trong lúc hàng đang đi đường
    for it in issue.items:
        material = db.session.get(Material, it.material_id, with_for_update=True)
        if _d(material.stock) < _d(it.quantity):
            raise InsufficientStockError(
                material.id, material.name, _d(material.stock), _d(it.quantity)
            )

    issue.status = StockIssueStatus.COMPLETED
    issue.received_by_id = int(receiver_id)
    issue.received_at = datetime.utcnow()
    if note:
        issue.note = note

    # bây giờ mới trừ tồn
    for it in issue.items:
        db.session.execute(
            update(Material)
            .where(Material.id == it.material_id)
            .values(stock=Material.stock - it.quantity)
        )

    issue.request.status = RequestStatus.COMPLETED
    _commit()
    logger.info(
        "Stock issue %s received by user %s, request %s completed",
        issue.code,
        receiver_id,
        issue.request.code,
    )
    return issue


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
