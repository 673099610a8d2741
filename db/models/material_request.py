from configs import db
from datetime import datetime
import enum


class RequestPriority(enum.Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class RequestStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PROCESSING = "processing"  # đang xuất kho / đang mua
    COMPLETED = "completed"


class MaterialRequest(db.Model):
    __tablename__ = "material_request"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    code = db.Column(db.String(20), unique=True, nullable=False)  # YC00001
    project_id = db.Column(db.Integer, db.ForeignKey("project.id"), nullable=False)
    created_by_id = db.Column(
        db.Integer, db.ForeignKey("user_account.id"), nullable=False
    )
    description = db.Column(db.Text)
    priority = db.Column(
        db.Enum(RequestPriority), default=RequestPriority.NORMAL, nullable=False
    )
    need_by_date = db.Column(db.DateTime)
    status = db.Column(
        db.Enum(RequestStatus), default=RequestStatus.PENDING, nullable=False
    )
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    project = db.relationship("Project")
    created_by = db.relationship("User")


class RequestItem(db.Model):
    __tablename__ = "request_item"
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    request_id = db.Column(
        db.Integer,
        db.ForeignKey("material_request.id", ondelete="CASCADE"),
        nullable=False,
    )
    material_id = db.Column(db.Integer, db.ForeignKey("material.id"), nullable=False)
    quantity = db.Column(db.Numeric(18, 3), nullable=False)
    note = db.Column(db.Text)

    request = db.relationship(
        "MaterialRequest",
        backref=db.backref(
            "items", cascade="all, delete-orphan", order_by="RequestItem.id"
        ),
    )
    material = db.relationship("Material")

    __table_args__ = (db.CheckConstraint("quantity > 0", name="ck_request_item_qty"),)
