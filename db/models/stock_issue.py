from configs import db
from datetime import datetime
import enum


class StockIssueStatus(enum.Enum):
    PENDING = "pending"  # đã xuất kho, chờ giám sát xác nhận
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class StockIssue(db.Model):
    __tablename__ = "stock_issue"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    code = db.Column(db.String(20), unique=True, nullable=False)  # XK00001
    request_id = db.Column(
        db.Integer, db.ForeignKey("material_request.id"), unique=True, nullable=False
    )
    issued_by_id = db.Column(
        db.Integer, db.ForeignKey("user_account.id"), nullable=False
    )
    received_by_id = db.Column(db.Integer, db.ForeignKey("user_account.id"))
    status = db.Column(
        db.Enum(StockIssueStatus), default=StockIssueStatus.PENDING, nullable=False
    )
    note = db.Column(db.Text)
    issued_at = db.Column(db.DateTime, default=datetime.utcnow)
    received_at = db.Column(db.DateTime)

    request = db.relationship(
        "MaterialRequest", backref=db.backref("stock_issue", uselist=False)
    )
    issuer = db.relationship("User", foreign_keys=[issued_by_id])
    receiver = db.relationship("User", foreign_keys=[received_by_id])


class StockIssueItem(db.Model):
    __tablename__ = "stock_issue_item"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    issue_id = db.Column(
        db.Integer, db.ForeignKey("stock_issue.id", ondelete="CASCADE"), nullable=False
    )
    material_id = db.Column(db.Integer, db.ForeignKey("material.id"), nullable=False)
    quantity = db.Column(db.Numeric(18, 3), nullable=False)
    note = db.Column(db.Text)

    issue = db.relationship(
        "StockIssue",
        backref=db.backref(
            "items", cascade="all, delete-orphan", order_by="StockIssueItem.id"
        ),
    )
    material = db.relationship("Material")
