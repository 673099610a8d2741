from configs import db
from datetime import datetime


class SupplierEvaluation(db.Model):
    __tablename__ = "supplier_evaluation"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("supplier.id"), nullable=False)
    po_id = db.Column(db.Integer, db.ForeignKey("purchase_order.id"), nullable=False)
    evaluator_id = db.Column(
        db.Integer, db.ForeignKey("user_account.id"), nullable=False
    )
    # thang điểm 1-5
    price_score = db.Column(db.Integer, nullable=False)
    quality_score = db.Column(db.Integer, nullable=False)
    delivery_score = db.Column(db.Integer, nullable=False)
    support_score = db.Column(db.Integer, nullable=False)
    avg_score = db.Column(db.Numeric(3, 2), nullable=False)
    comment = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    supplier = db.relationship("Supplier", backref="evaluations")
    po = db.relationship("PurchaseOrder")
    evaluator = db.relationship("User")
