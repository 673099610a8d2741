from configs import db
from datetime import datetime
import enum


class QualityStatus(enum.Enum):
    OK = "ok"
    PARTIAL = "partial"
    NG = "ng"


class Delivery(db.Model):
    """Biên bản giao nhận, 1-1 với PO."""

    __tablename__ = "delivery"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    po_id = db.Column(
        db.Integer, db.ForeignKey("purchase_order.id"), unique=True, nullable=False
    )
    delivery_date = db.Column(db.DateTime, default=datetime.utcnow)
    received_by = db.Column(db.String(120), nullable=False)
    actual_quantity = db.Column(db.JSON, default=dict)  # {material_id: qty}
    quality_status = db.Column(
        db.Enum(QualityStatus), default=QualityStatus.OK, nullable=False
    )
    photos = db.Column(db.JSON)
    note = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    po = db.relationship(
        "PurchaseOrder", backref=db.backref("delivery", uselist=False)
    )


class DeliveryTracking(db.Model):
    """Nhật ký vận chuyển, chỉ thêm mới."""

    __tablename__ = "delivery_tracking"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    po_id = db.Column(
        db.Integer,
        db.ForeignKey("purchase_order.id", ondelete="CASCADE"),
        nullable=False,
    )
    status = db.Column(db.String(40), nullable=False)  # shipped/in_transit/arrived/delayed...
    location = db.Column(db.String(255))
    note = db.Column(db.Text)
    is_delayed = db.Column(db.Boolean, default=False, nullable=False)
    delay_reason = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    po = db.relationship(
        "PurchaseOrder",
        backref=db.backref(
            "trackings",
            cascade="all, delete-orphan",
            order_by="DeliveryTracking.id",
        ),
    )
