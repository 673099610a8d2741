from configs import db
import enum


class ApprovalStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Approval(db.Model):
    """
    1 cấp duyệt. Dùng chung cho MaterialRequest và PurchaseOrder:
    đúng 1 trong 2 khóa ngoại request_id / po_id được gán.
    """

    __tablename__ = "approval"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    request_id = db.Column(
        db.Integer, db.ForeignKey("material_request.id", ondelete="CASCADE")
    )
    po_id = db.Column(db.Integer, db.ForeignKey("purchase_order.id", ondelete="CASCADE"))
    level = db.Column(db.Integer, nullable=False)
    status = db.Column(
        db.Enum(ApprovalStatus), default=ApprovalStatus.PENDING, nullable=False
    )
    approver_id = db.Column(db.Integer, db.ForeignKey("user_account.id"))
    comment = db.Column(db.Text)
    signature = db.Column(db.Text)
    approved_at = db.Column(db.DateTime)

    approver = db.relationship("User")
    request = db.relationship(
        "MaterialRequest",
        backref=db.backref(
            "approvals", cascade="all, delete-orphan", order_by="Approval.level"
        ),
    )
    po = db.relationship(
        "PurchaseOrder",
        backref=db.backref(
            "approvals", cascade="all, delete-orphan", order_by="Approval.level"
        ),
    )

    __table_args__ = (
        db.UniqueConstraint("request_id", "level", name="uq_approval_request_level"),
        db.UniqueConstraint("po_id", "level", name="uq_approval_po_level"),
        db.CheckConstraint(
            "(request_id IS NULL) <> (po_id IS NULL)", name="ck_approval_one_parent"
        ),
        db.CheckConstraint("level >= 1", name="ck_approval_level"),
    )
