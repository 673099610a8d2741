from configs import db
from datetime import datetime
import enum


class POStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SENT = "sent"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PurchaseOrder(db.Model):
    __tablename__ = "purchase_order"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    code = db.Column(db.String(20), unique=True, nullable=False)  # PO00001

    # 1 báo giá chỉ tạo đúng 1 PO
    quotation_id = db.Column(
        db.Integer, db.ForeignKey("quotation.id"), unique=True, nullable=False
    )
    quotation = db.relationship("Quotation", backref=db.backref("po", uselist=False))

    project_id = db.Column(db.Integer, db.ForeignKey("project.id"), nullable=False)
    project = db.relationship("Project")
    supplier_id = db.Column(db.Integer, db.ForeignKey("supplier.id"), nullable=False)
    supplier = db.relationship("Supplier", backref="purchase_orders")

    status = db.Column(
        db.Enum(POStatus, name="postatus"), default=POStatus.PENDING, nullable=False
    )
    total_amount = db.Column(db.Numeric(18, 2), default=0, nullable=False)
    vat_amount = db.Column(db.Numeric(18, 2), default=0, nullable=False)
    grand_total = db.Column(db.Numeric(18, 2), default=0, nullable=False)

    delivery_address = db.Column(db.String(255))
    delivery_date = db.Column(db.DateTime)
    actual_delivery = db.Column(db.DateTime)
    payment_terms = db.Column(db.String(255))
    note = db.Column(db.Text)
    created_by_id = db.Column(db.Integer, db.ForeignKey("user_account.id"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


class PurchaseOrderItem(db.Model):
    __tablename__ = "purchase_order_item"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)

    po_id = db.Column(
        db.Integer,
        db.ForeignKey("purchase_order.id", ondelete="CASCADE"),
        nullable=False,
    )
    material_id = db.Column(db.Integer, db.ForeignKey("material.id"), nullable=False)

    quantity = db.Column(db.Numeric(18, 3), nullable=False)
    unit_price = db.Column(db.Numeric(18, 2), nullable=False)
    amount = db.Column(db.Numeric(18, 2), nullable=False)

    po = db.relationship(
        "PurchaseOrder",
        backref=db.backref(
            "items", cascade="all, delete-orphan", order_by="PurchaseOrderItem.id"
        ),
    )
    material = db.relationship("Material")
