from datetime import datetime, timedelta
from decimal import Decimal
import warnings

import pytest
from sqlalchemy.exc import SAWarning

from db.models.approval import ApprovalStatus
from db.models.purchase import POStatus
from dao import approval as approval_dao, purchase as po_dao, quotation as quotation_dao
from utils.errors import (
    AlreadyExistsError,
    InvalidStateError,
    NoPendingApprovalError,
    NotFoundError,
)


def _create_po(quotation, users):
    return po_dao.create_from_quotation(
        quotation.id,
        "Công trường DA001",
        datetime.utcnow() + timedelta(days=5),
        note="giao giờ hành chính",
        created_by_id=users["manager"].id,
    )


def test_po_copies_quotation_and_adds_vat(selected_quotation, users, materials):
    q = selected_quotation(unit_prices=(Decimal("17000.33"), Decimal("18000")))
    po = _create_po(q, users)

    assert po.code == "PO00001"
    assert po.status == POStatus.PENDING
    assert po.supplier_id == q.supplier_id
    assert po.project_id == q.rfq.request.project_id
    assert po.total_amount == Decimal("8500165.00")
    assert po.vat_amount == Decimal("850016.50")
    assert po.grand_total == Decimal("9350181.50")
    assert [(it.material_id, it.quantity, it.unit_price) for it in po.items] == [
        (materials["steel"].id, Decimal("500"), Decimal("17000.33"))
    ]
    assert [a.level for a in po.approvals] == [1, 2, 3]


def test_vat_on_small_total(selected_quotation, users):
    # 500 * 0.03 = 15.00 -> VAT 1.50
    q = selected_quotation(unit_prices=(Decimal("0.03"), Decimal("1")))
    po = _create_po(q, users)
    assert po.vat_amount == Decimal("1.50")
    assert po.grand_total == Decimal("16.50")


def test_grand_total_not_recomputed_after_items_change(selected_quotation, users):
    q = selected_quotation()
    po = _create_po(q, users)
    before = po.grand_total
    po.items[0].amount = Decimal("1")
    po_dao._commit()
    assert po_dao.get_po(po.id).grand_total == before


def test_missing_quotation(app, users):
    with pytest.raises(NotFoundError):
        po_dao.create_from_quotation(999, "x", None)


def test_only_selected_quotation_and_once(selected_quotation, users):
    q = selected_quotation()
    sibling = next(x for x in quotation_dao.list_for_rfq(q.rfq_id) if x.id != q.id)
    with pytest.raises(InvalidStateError):
        _create_po(sibling, users)

    _create_po(q, users)
    with pytest.raises(AlreadyExistsError):
        _create_po(q, users)
    # đã có PO thì không đổi báo giá được nữa
    with pytest.raises(InvalidStateError):
        quotation_dao.select_quotation(sibling.id)


def test_po_three_level_approval(selected_quotation, users, approve_all):
    po = _create_po(selected_quotation(), users)
    approve_all(po_dao.act_on_approval, po.id)
    assert po.status == POStatus.APPROVED


def test_po_rejected_at_level_three_is_terminal(selected_quotation, users):
    po = _create_po(selected_quotation(), users)
    po_dao.act_on_approval(po.id, users["manager"].id, "approved")
    po_dao.act_on_approval(po.id, users["accountant"].id, "approved")
    po_dao.act_on_approval(po.id, users["director"].id, "rejected", comment="giá cao")

    assert approval_dao.evaluate_outcome(po.approvals) == ApprovalStatus.REJECTED
    assert po.status == POStatus.REJECTED

    with pytest.raises(NoPendingApprovalError) as exc:
        po_dao.act_on_approval(po.id, users["director"].id, "approved")
    assert exc.value.outcome == "rejected"
    assert po.status == POStatus.REJECTED


def test_send_po_emails_supplier(approved_po, mailer):
    po = approved_po()
    po_dao.send_po(po.id)
    assert po.status == POStatus.SENT
    assert mailer.of_kind("po") == [("po", "ncc1@demo.com", po.code)]


def test_send_po_survives_mail_failure(approved_po, mailer):
    mailer.fail_for.add("ncc1@demo.com")
    po = approved_po()
    po_dao.send_po(po.id)
    assert po.status == POStatus.SENT


def test_send_requires_approved(selected_quotation, users):
    po = _create_po(selected_quotation(), users)
    with pytest.raises(InvalidStateError):
        po_dao.send_po(po.id)


def test_cancel_po(selected_quotation, users):
    po = _create_po(selected_quotation(), users)
    po_dao.cancel_po(po.id, "đổi NCC")
    assert po.status == POStatus.CANCELLED
    assert "đổi NCC" in po.note
    with pytest.raises(InvalidStateError):
        po_dao.cancel_po(po.id)


def test_list_filters(selected_quotation, users):
    po = _create_po(selected_quotation(), users)
    assert [p.id for p in po_dao.list_purchase_orders(status="pending")] == [po.id]
    assert po_dao.list_purchase_orders(status="approved") == []


def test_cancelled_po_refuses_approvals(selected_quotation, users):
    po = _create_po(selected_quotation(), users)
    po_dao.cancel_po(po.id, "dự án tạm dừng")

    with pytest.raises(InvalidStateError) as exc:
        po_dao.act_on_approval(po.id, users["manager"].id, "approved")
    assert exc.value.details["status"] == "cancelled"
    assert [a.status for a in po.approvals] == [ApprovalStatus.PENDING] * 3
    assert po.status == POStatus.CANCELLED


def test_create_po_emits_no_session_warnings(selected_quotation, users):
    q = selected_quotation()
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        po = _create_po(q, users)
    assert not [w for w in caught if issubclass(w.category, SAWarning)]
    assert len(po.items) == len(q.items)
