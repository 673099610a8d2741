from decimal import Decimal

import pytest

from configs import db
from db.models.delivery import QualityStatus
from db.models.notification import Notification
from db.models.payment import PaymentStatus, PaymentType
from db.models.purchase import POStatus
from dao import (
    delivery as delivery_dao,
    evaluation as evaluation_dao,
    notification as notification_dao,
    payment as payment_dao,
    purchase as po_dao,
)
from utils.errors import (
    AlreadyExistsError,
    AlreadyProcessedError,
    InvalidStateError,
    ValidationError,
)


@pytest.fixture
def delivered_po(approved_po):
    po = approved_po()
    delivery_dao.create_delivery(po.id, "Hoàng Văn E", quality_status="ok")
    return po


def test_delivery_defaults_to_ordered_quantities(approved_po, materials):
    po = approved_po()
    d = delivery_dao.create_delivery(po.id, "Hoàng Văn E")
    assert po.status == POStatus.DELIVERED
    assert d.quality_status == QualityStatus.OK
    assert Decimal(d.actual_quantity[str(materials["steel"].id)]) == Decimal("500")
    assert delivery_dao.get_delivery_for_po(po.id).id == d.id

    with pytest.raises(AlreadyExistsError):
        delivery_dao.create_delivery(po.id, "ai đó")


def test_delivery_requires_approved_po(selected_quotation, users):
    po = po_dao.create_from_quotation(selected_quotation().id, "x", None)
    with pytest.raises(InvalidStateError):
        delivery_dao.create_delivery(po.id, "Hoàng Văn E")


def test_check_documents_for_postpay(approved_po):
    po = approved_po()
    check = payment_dao.check_documents(po.id, "postpay")
    assert check["can_proceed"] is False
    assert check["missing_required"] == ["Biên bản giao nhận", "Hóa đơn VAT"]
    assert payment_dao.check_documents(po.id, "prepay")["can_proceed"] is True


def test_postpay_without_documents_lists_missing(approved_po):
    po = approved_po()
    with pytest.raises(ValidationError) as exc:
        payment_dao.create_payment(po.id, payment_type="postpay")
    assert exc.value.missing_documents == ["Biên bản giao nhận", "Hóa đơn VAT"]
    assert payment_dao.get_payment_for_po(po.id) is None


def test_prepay_allowed_before_delivery(approved_po, users):
    po = approved_po()
    p = payment_dao.create_payment(
        po.id, payment_type="prepay", created_by_id=users["accountant"].id
    )
    assert p.type == PaymentType.PREPAY
    assert p.amount == po.grand_total


def test_payment_lifecycle(delivered_po, users):
    po = delivered_po
    p = payment_dao.create_payment(
        po.id,
        payment_type="postpay",
        vat_invoice_file="/files/vat-001.pdf",
        invoice_number="0001234",
        created_by_id=users["accountant"].id,
    )
    assert p.unc_number == "UNC00001"
    assert p.status == PaymentStatus.PENDING
    assert Notification.query.filter_by(
        user_id=users["accountant"].id, title="Yêu cầu thanh toán mới"
    ).count() == 1

    with pytest.raises(AlreadyExistsError):
        payment_dao.create_payment(po.id, payment_type="prepay")

    payment_dao.approve_payment(p.id, users["accountant"].id, "approved")
    assert p.status == PaymentStatus.PAID
    assert p.paid_at is not None
    assert po.status == POStatus.COMPLETED

    with pytest.raises(AlreadyProcessedError):
        payment_dao.approve_payment(p.id, users["accountant"].id, "approved")


def test_rejected_payment_is_cancelled(delivered_po, users):
    p = payment_dao.create_payment(
        delivered_po.id, payment_type="postpay", vat_invoice_file="/files/vat.pdf"
    )
    payment_dao.approve_payment(p.id, users["accountant"].id, "rejected", note="sai số")
    assert p.status == PaymentStatus.CANCELLED
    assert delivered_po.status == POStatus.DELIVERED


def test_payment_amount_cannot_exceed_grand_total(delivered_po):
    with pytest.raises(ValidationError):
        payment_dao.create_payment(
            delivered_po.id,
            amount=delivered_po.grand_total + 1,
            payment_type="postpay",
            vat_invoice_file="/files/vat.pdf",
        )


def test_evaluation_updates_supplier_rating(delivered_po, users):
    ev1 = evaluation_dao.create_evaluation(delivered_po.id, users["manager"].id, 5, 4, 4, 3)
    assert ev1.avg_score == Decimal("4.00")
    evaluation_dao.create_evaluation(delivered_po.id, users["supervisor"].id, 3, 3, 3, 4)

    supplier = delivered_po.supplier
    db.session.refresh(supplier)
    # (4.00 + 3.25) / 2
    assert supplier.rating == Decimal("3.63")
    assert len(evaluation_dao.list_for_supplier(supplier.id)) == 2


def test_evaluation_validates_scores(delivered_po, users):
    with pytest.raises(ValidationError):
        evaluation_dao.create_evaluation(delivered_po.id, users["manager"].id, 6, 4, 4, 4)


def test_notification_read_flags(approved_po, users):
    approved_po()
    staff = users["staff"].id
    rows = notification_dao.list_for_user(staff)
    assert rows and not any(n.read for n in rows)

    notification_dao.mark_read(rows[0].id, staff)
    assert rows[0].read is True
    notification_dao.mark_all_read(staff)
    assert all(n.read for n in notification_dao.list_for_user(staff))
