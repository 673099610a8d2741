from configs import db
from datetime import datetime


class MaterialQuota(db.Model):
    """Định mức BOQ theo (dự án, vật tư)."""

    __tablename__ = "material_quota"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    project_id = db.Column(db.Integer, db.ForeignKey("project.id"), nullable=False)
    material_id = db.Column(db.Integer, db.ForeignKey("material.id"), nullable=False)
    max_quantity = db.Column(db.Numeric(18, 3), nullable=False)
    # chỉ tăng, khi yêu cầu được duyệt đủ cấp
    used_quantity = db.Column(db.Numeric(18, 3), default=0, nullable=False)
    created_by_id = db.Column(db.Integer, db.ForeignKey("user_account.id"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = db.relationship("Project")
    material = db.relationship("Material")
    created_by = db.relationship("User")

    __table_args__ = (
        db.UniqueConstraint("project_id", "material_id", name="uq_quota_project_material"),
    )
