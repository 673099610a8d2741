from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from configs import db
from db.models.material_request import RequestStatus
from db.models.quotation import QuotationStatus
from db.models.rfq import RFQ, RFQStatus
from dao import quotation as quotation_dao, rfq as rfq_dao, stock as stock_dao
from utils.errors import (
    AllFulfillableFromStockError,
    AlreadyExistsError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)

DEADLINE = datetime(2030, 1, 15)


def _quote(rfq, supplier, material, price, qty=500):
    return quotation_dao.submit_quotation(
        rfq.id,
        supplier.id,
        [{"material_id": material.id, "quantity": qty, "unit_price": price}],
        delivery_time=7,
        payment_terms="30 ngày",
        valid_until=DEADLINE + timedelta(days=30),
    )


def test_rfq_items_carry_shortfall_only(approved_request, suppliers, materials, users, mailer):
    req = approved_request(2000)
    rfq = rfq_dao.create_rfq(
        req.id, [suppliers[0].id, suppliers[1].id], DEADLINE, created_by_id=users["manager"].id
    )

    assert rfq.code == "RFQ00001"
    assert rfq.status == RFQStatus.SENT
    assert rfq.title == "Yêu cầu báo giá - Dự án Chung cư Sunrise"
    assert [(it.material_id, it.quantity) for it in rfq.items] == [
        (materials["steel"].id, Decimal("500"))
    ]
    assert "Cần mua 500" in rfq.description
    assert req.status == RequestStatus.PROCESSING
    assert sorted(m[1] for m in mailer.of_kind("rfq")) == ["ncc1@demo.com", "ncc2@demo.com"]
    assert all(inv.email_sent for inv in rfq.invitations)


def test_rfq_after_partial_issue_still_buys_shortfall(approved_request, suppliers, materials, users):
    req = approved_request(2000)
    stock_dao.issue_stock(req.id, None, users["staff"].id)

    rfq = rfq_dao.create_rfq(req.id, [s.id for s in suppliers[:2]], DEADLINE)
    assert len(rfq.items) == 1
    assert rfq.items[0].quantity == Decimal("500")


def test_all_fulfillable_refuses_rfq(approved_request, suppliers):
    req = approved_request(1000)
    with pytest.raises(AllFulfillableFromStockError):
        rfq_dao.create_rfq(req.id, [s.id for s in suppliers[:2]], DEADLINE)
    assert RFQ.query.count() == 0


def test_single_supplier_fails_before_any_side_effect(approved_request, suppliers, mailer):
    req = approved_request(2000)
    with pytest.raises(ValidationError) as exc:
        rfq_dao.create_rfq(req.id, [suppliers[0].id, suppliers[0].id], DEADLINE)
    assert exc.value.details["min_suppliers"] == 2
    assert RFQ.query.count() == 0
    assert mailer.sent == []
    assert req.status == RequestStatus.APPROVED


def test_unknown_supplier(approved_request, suppliers):
    req = approved_request(2000)
    with pytest.raises(NotFoundError):
        rfq_dao.create_rfq(req.id, [suppliers[0].id, 999], DEADLINE)


def test_rfq_requires_approved_request(make_request, materials, suppliers):
    req = make_request([{"material_id": materials["steel"].id, "quantity": 5000}])
    with pytest.raises(InvalidStateError):
        rfq_dao.create_rfq(req.id, [s.id for s in suppliers[:2]], DEADLINE)


def test_one_rfq_per_request(approved_request, suppliers):
    req = approved_request(2000)
    rfq_dao.create_rfq(req.id, [s.id for s in suppliers[:2]], DEADLINE)
    with pytest.raises(AlreadyExistsError):
        rfq_dao.create_rfq(req.id, [s.id for s in suppliers[1:]], DEADLINE)


def test_email_failure_skips_only_that_supplier(approved_request, suppliers, mailer):
    mailer.fail_for.add("ncc2@demo.com")
    req = approved_request(2000)
    rfq = rfq_dao.create_rfq(req.id, [s.id for s in suppliers], DEADLINE)

    sent = {inv.supplier.code: inv.email_sent for inv in rfq.invitations}
    assert sent == {"NCC001": True, "NCC002": False, "NCC003": True}
    assert db.session.get(RFQ, rfq.id) is not None


def test_stock_preview(approved_request, materials):
    req = approved_request(2000)
    preview = rfq_dao.stock_preview(req.id)
    assert preview["summary"]["should_create_rfq"] is True
    assert preview["summary"]["total_need_purchase"] == Decimal("500")


def test_quotation_amounts(approved_request, suppliers, materials):
    req = approved_request(2000)
    rfq = rfq_dao.create_rfq(req.id, [s.id for s in suppliers[:2]], DEADLINE)
    q = _quote(rfq, suppliers[0], materials["steel"], "17000.50")

    assert q.code == "BG00001"
    assert q.status == QuotationStatus.PENDING
    assert q.items[0].amount == Decimal("8500250.00")
    assert q.total_amount == Decimal("8500250.00")


def test_quotation_validations(approved_request, suppliers, materials):
    req = approved_request(2000)
    rfq = rfq_dao.create_rfq(req.id, [s.id for s in suppliers[:2]], DEADLINE)

    with pytest.raises(ValidationError):
        _quote(rfq, suppliers[0], materials["cement"], 1000)
    with pytest.raises(ValidationError):
        _quote(rfq, suppliers[0], materials["steel"], 1000, qty=0)
    with pytest.raises(ValidationError):
        _quote(rfq, suppliers[0], materials["steel"], -1)

    _quote(rfq, suppliers[0], materials["steel"], 1000)
    with pytest.raises(AlreadyExistsError):
        _quote(rfq, suppliers[0], materials["steel"], 900)


def test_select_quotation_rejects_siblings(approved_request, suppliers, materials):
    req = approved_request(2000)
    rfq = rfq_dao.create_rfq(req.id, [s.id for s in suppliers], DEADLINE)
    bg1 = _quote(rfq, suppliers[0], materials["steel"], 17000)
    bg2 = _quote(rfq, suppliers[1], materials["steel"], 16500)
    bg3 = _quote(rfq, suppliers[2], materials["steel"], 17200)

    quotation_dao.select_quotation(bg1.id)

    assert [bg1.status, bg2.status, bg3.status] == [
        QuotationStatus.SELECTED,
        QuotationStatus.REJECTED,
        QuotationStatus.REJECTED,
    ]
    assert rfq.status == RFQStatus.CLOSED
    selected = [q for q in quotation_dao.list_for_rfq(rfq.id) if q.status == QuotationStatus.SELECTED]
    assert len(selected) == 1


def test_reselect_moves_the_single_selection(approved_request, suppliers, materials):
    req = approved_request(2000)
    rfq = rfq_dao.create_rfq(req.id, [s.id for s in suppliers[:2]], DEADLINE)
    bg1 = _quote(rfq, suppliers[0], materials["steel"], 17000)
    bg2 = _quote(rfq, suppliers[1], materials["steel"], 16500)

    quotation_dao.select_quotation(bg1.id)
    quotation_dao.select_quotation(bg2.id)
    assert bg1.status == QuotationStatus.REJECTED
    assert bg2.status == QuotationStatus.SELECTED


def test_closed_rfq_refuses_new_quotations(approved_request, suppliers, materials):
    req = approved_request(2000)
    rfq = rfq_dao.create_rfq(req.id, [s.id for s in suppliers], DEADLINE)
    bg1 = _quote(rfq, suppliers[0], materials["steel"], 17000)
    quotation_dao.select_quotation(bg1.id)
    with pytest.raises(InvalidStateError):
        _quote(rfq, suppliers[1], materials["steel"], 16000)


def test_compare_sorted_by_total(approved_request, suppliers, materials):
    req = approved_request(2000)
    rfq = rfq_dao.create_rfq(req.id, [s.id for s in suppliers], DEADLINE)
    _quote(rfq, suppliers[0], materials["steel"], 17000)
    _quote(rfq, suppliers[1], materials["steel"], 16500)
    rows = quotation_dao.compare(rfq.id)
    assert [r["supplier_id"] for r in rows] == [suppliers[1].id, suppliers[0].id]


def test_inactive_supplier_cannot_be_invited(approved_request, suppliers, mailer):
    req = approved_request(2000)
    suppliers[1].is_active = False
    db.session.commit()

    with pytest.raises(ValidationError) as exc:
        rfq_dao.create_rfq(req.id, [suppliers[0].id, suppliers[1].id], DEADLINE)
    assert exc.value.details["inactive_supplier_ids"] == [suppliers[1].id]
    assert RFQ.query.count() == 0
    assert mailer.sent == []

    rfq = rfq_dao.create_rfq(req.id, [suppliers[0].id, suppliers[2].id], DEADLINE)
    assert sorted(i.supplier_id for i in rfq.invitations) == [suppliers[0].id, suppliers[2].id]
