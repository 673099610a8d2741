from configs import db
from datetime import datetime
import enum


class QuotationStatus(enum.Enum):
    PENDING = "pending"
    SELECTED = "selected"
    REJECTED = "rejected"


class Quotation(db.Model):
    __tablename__ = "quotation"
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    code = db.Column(db.String(20), unique=True, nullable=False)  # BG00001
    rfq_id = db.Column(
        db.Integer, db.ForeignKey("rfq.id", ondelete="CASCADE"), nullable=False
    )
    supplier_id = db.Column(db.Integer, db.ForeignKey("supplier.id"), nullable=False)
    total_amount = db.Column(db.Numeric(18, 2), default=0, nullable=False)
    delivery_time = db.Column(db.Integer)  # số ngày giao hàng
    payment_terms = db.Column(db.String(255))
    note = db.Column(db.Text)
    valid_until = db.Column(db.DateTime)
    status = db.Column(
        db.Enum(QuotationStatus), default=QuotationStatus.PENDING, nullable=False
    )
    submitted_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Ghép với RFQ.quotations
    rfq = db.relationship("RFQ", back_populates="quotations")
    supplier = db.relationship("Supplier")


class QuotationItem(db.Model):
    __tablename__ = "quotation_item"
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    quotation_id = db.Column(
        db.Integer,
        db.ForeignKey("quotation.id", ondelete="CASCADE"),
        nullable=False,
    )
    material_id = db.Column(db.Integer, db.ForeignKey("material.id"), nullable=False)
    quantity = db.Column(db.Numeric(18, 3), nullable=False)
    unit_price = db.Column(db.Numeric(18, 2), nullable=False)
    amount = db.Column(db.Numeric(18, 2), nullable=False)
    note = db.Column(db.Text)

    quotation = db.relationship(
        "Quotation",
        backref=db.backref(
            "items",
            cascade="all, delete-orphan",
            lazy="select",
            passive_deletes=True,
            order_by="QuotationItem.id",
        ),
    )
    material = db.relationship("Material")
