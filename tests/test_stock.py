from decimal import Decimal

import pytest

from configs import db
from db.models.material_request import MaterialRequest, RequestStatus
from db.models.stock_issue import StockIssueStatus
from dao import material as material_dao, stock as stock_dao
from utils.errors import (
    AlreadyExistsError,
    AlreadyProcessedError,
    InsufficientStockError,
    InvalidStateError,
    ValidationError,
)


def _item(analysis, material_id):
    return next(x for x in analysis["items"] if x["material_id"] == material_id)


def test_full_fulfillment_from_stock(approved_request, materials, users):
    steel = materials["steel"]
    req = approved_request(1000)

    analysis = stock_dao.analyze(req.id)
    row = _item(analysis, steel.id)
    assert row["can_fulfill"] is True
    assert row["fulfill_quantity"] == Decimal("1000")
    assert row["need_to_buy"] == Decimal("0")
    assert analysis["can_fulfill_fully"] is True

    issue = stock_dao.issue_stock(
        req.id, [{"material_id": steel.id, "quantity": 1000}], users["staff"].id
    )
    assert issue.code == "XK00001"
    assert issue.status == StockIssueStatus.PENDING
    assert req.status == RequestStatus.PROCESSING
    db.session.refresh(steel)
    assert steel.stock == Decimal("1500")

    stock_dao.confirm_receipt(issue.id, users["supervisor"].id)
    db.session.refresh(steel)
    assert steel.stock == Decimal("500")
    assert issue.status == StockIssueStatus.COMPLETED
    assert issue.received_by_id == users["supervisor"].id
    assert req.status == RequestStatus.COMPLETED


def test_partial_fulfillment_splits_shortfall(approved_request, materials, users):
    steel = materials["steel"]
    req = approved_request(2000)

    row = _item(stock_dao.analyze(req.id), steel.id)
    assert row["fulfill_quantity"] == Decimal("1500")
    assert row["need_to_buy"] == Decimal("500")
    assert row["can_fulfill"] is False

    # không truyền items -> xuất phần đáp ứng được
    issue = stock_dao.issue_stock(req.id, None, users["staff"].id)
    assert [(it.material_id, it.quantity) for it in issue.items] == [
        (steel.id, Decimal("1500"))
    ]


def test_analyze_reports_reserved_but_uses_raw_stock(approved_request, materials, users):
    steel = materials["steel"]
    first = approved_request(1000)
    stock_dao.issue_stock(first.id, None, users["staff"].id)

    second = approved_request(400)
    row = _item(stock_dao.analyze(second.id), steel.id)
    assert row["available"] == Decimal("1500")
    assert row["reserved"] == Decimal("1000")
    assert row["can_fulfill"] is True


def test_empty_request_is_vacuously_fulfillable(app):
    analysis = stock_dao.analyze_request(MaterialRequest(code="YC-EMPTY"))
    assert analysis["can_fulfill_fully"] is True
    assert analysis["can_fulfill_partially"] is False
    assert analysis["items"] == []


def test_issue_requires_approved_request(make_request, materials, users):
    req = make_request([{"material_id": materials["steel"].id, "quantity": 10}])
    with pytest.raises(InvalidStateError):
        stock_dao.issue_stock(req.id, None, users["staff"].id)


def test_issue_more_than_stock_fails(approved_request, materials, users):
    steel = materials["steel"]
    req = approved_request(2000)
    with pytest.raises(InsufficientStockError) as exc:
        stock_dao.issue_stock(
            req.id, [{"material_id": steel.id, "quantity": 1600}], users["staff"].id
        )
    assert exc.value.material_name == "Thép D10"
    assert exc.value.available == Decimal("1500")
    assert exc.value.requested == Decimal("1600")
    assert stock_dao.get_issue_for_request(req.id) is None


def test_issue_rejects_foreign_material_and_over_request(approved_request, materials, users):
    req = approved_request(100)
    with pytest.raises(ValidationError):
        stock_dao.issue_stock(
            req.id, [{"material_id": materials["cement"].id, "quantity": 1}], users["staff"].id
        )
    with pytest.raises(ValidationError):
        stock_dao.issue_stock(
            req.id, [{"material_id": materials["steel"].id, "quantity": 101}], users["staff"].id
        )


def test_second_issue_for_same_request_fails(approved_request, users):
    req = approved_request(100)
    stock_dao.issue_stock(req.id, None, users["staff"].id)
    req.status = RequestStatus.APPROVED
    db.session.commit()
    with pytest.raises(AlreadyExistsError):
        stock_dao.issue_stock(req.id, None, users["staff"].id)


def test_confirm_twice_is_rejected_and_stock_decremented_once(
    approved_request, materials, users
):
    steel = materials["steel"]
    req = approved_request(300)
    issue = stock_dao.issue_stock(req.id, None, users["staff"].id)
    stock_dao.confirm_receipt(issue.id, users["supervisor"].id)

    with pytest.raises(AlreadyProcessedError):
        stock_dao.confirm_receipt(issue.id, users["supervisor"].id)
    db.session.refresh(steel)
    assert steel.stock == Decimal("1200")


def test_confirm_rechecks_stock(approved_request, materials, users):
    steel = materials["steel"]
    req = approved_request(1000)
    issue = stock_dao.issue_stock(req.id, None, users["staff"].id)
    steel.stock = Decimal("200")
    db.session.commit()

    with pytest.raises(InsufficientStockError):
        stock_dao.confirm_receipt(issue.id, users["supervisor"].id)
    db.session.refresh(issue)
    assert issue.status == StockIssueStatus.PENDING


def test_material_update_cannot_lower_stock(materials):
    steel = materials["steel"]
    with pytest.raises(ValidationError) as exc:
        material_dao.update_material(steel.id, stock="10", price="19000")
    assert exc.value.details["new_stock"] == Decimal("10")
    db.session.refresh(steel)
    assert steel.stock == Decimal("1500")
    assert steel.price == Decimal("18000")

    material_dao.update_material(steel.id, stock="1800")
    assert steel.stock == Decimal("1800")
