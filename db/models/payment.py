from configs import db
from datetime import datetime
import enum


class PaymentMethod(enum.Enum):
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"
    CHECK = "check"


class PaymentType(enum.Enum):
    PREPAY = "prepay"
    POSTPAY = "postpay"


class PaymentStatus(enum.Enum):
    PENDING = "pending"  # chờ kế toán trưởng duyệt
    APPROVED = "approved"
    PAID = "paid"
    CANCELLED = "cancelled"


class Payment(db.Model):
    """Ủy nhiệm chi (UNC), 1-1 với PO."""

    __tablename__ = "payment"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    po_id = db.Column(
        db.Integer, db.ForeignKey("purchase_order.id"), unique=True, nullable=False
    )
    unc_number = db.Column(db.String(20), unique=True, nullable=False)
    amount = db.Column(db.Numeric(18, 2), nullable=False)
    method = db.Column(
        db.Enum(PaymentMethod), default=PaymentMethod.BANK_TRANSFER, nullable=False
    )
    type = db.Column(db.Enum(PaymentType), default=PaymentType.POSTPAY, nullable=False)
    status = db.Column(
        db.Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False
    )

    # chứng từ
    invoice_number = db.Column(db.String(60))
    vat_invoice_file = db.Column(db.String(255))
    delivery_note = db.Column(db.Text)
    acceptance_note = db.Column(db.Text)
    note = db.Column(db.Text)

    created_by_id = db.Column(db.Integer, db.ForeignKey("user_account.id"))
    approved_by_id = db.Column(db.Integer, db.ForeignKey("user_account.id"))
    approved_at = db.Column(db.DateTime)
    paid_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    po = db.relationship(
        "PurchaseOrder", backref=db.backref("payment", uselist=False)
    )
    approved_by = db.relationship("User", foreign_keys=[approved_by_id])
