from configs import db
from datetime import datetime
import enum


class RFQStatus(enum.Enum):
    SENT = "sent"
    CLOSED = "closed"


class RFQ(db.Model):
    __tablename__ = "rfq"
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    code = db.Column(db.String(20), unique=True, nullable=False)  # RFQ00001
    request_id = db.Column(
        db.Integer, db.ForeignKey("material_request.id"), unique=True
    )
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    deadline = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.Enum(RFQStatus), default=RFQStatus.SENT, nullable=False)
    created_by_id = db.Column(db.Integer, db.ForeignKey("user_account.id"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    request = db.relationship(
        "MaterialRequest", backref=db.backref("rfq", uselist=False)
    )

    # KHÔNG backref ở đây, dùng back_populates khớp với Quotation.rfq
    quotations = db.relationship(
        "Quotation",
        back_populates="rfq",
        cascade="all, delete-orphan",
        lazy="select",
        passive_deletes=True,
        order_by="Quotation.id",
    )


class RFQItem(db.Model):
    """Dòng RFQ: số lượng = phần thiếu (yêu cầu - tồn kho), không phải số yêu cầu."""

    __tablename__ = "rfq_item"
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    rfq_id = db.Column(
        db.Integer, db.ForeignKey("rfq.id", ondelete="CASCADE"), nullable=False
    )
    material_id = db.Column(db.Integer, db.ForeignKey("material.id"), nullable=False)
    quantity = db.Column(db.Numeric(18, 3), nullable=False)
    note = db.Column(db.Text)

    rfq = db.relationship(
        "RFQ",
        backref=db.backref(
            "items",
            cascade="all, delete-orphan",
            lazy="select",
            passive_deletes=True,
            order_by="RFQItem.id",
        ),
    )
    material = db.relationship("Material")


class RFQInvitation(db.Model):
    """NCC được mời báo giá; email_sent = False khi gửi mail lỗi."""

    __tablename__ = "rfq_invitation"
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    rfq_id = db.Column(
        db.Integer, db.ForeignKey("rfq.id", ondelete="CASCADE"), nullable=False
    )
    supplier_id = db.Column(db.Integer, db.ForeignKey("supplier.id"), nullable=False)
    email_sent = db.Column(db.Boolean, default=False, nullable=False)

    rfq = db.relationship(
        "RFQ",
        backref=db.backref(
            "invitations", cascade="all, delete-orphan", passive_deletes=True
        ),
    )
    supplier = db.relationship("Supplier")

    __table_args__ = (
        db.UniqueConstraint("rfq_id", "supplier_id", name="uq_rfq_invitation"),
    )
