from configs import db


class Material(db.Model):
    __tablename__ = "material"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    code = db.Column(db.String(60), unique=True, nullable=False)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(100))
    unit = db.Column(db.String(30), nullable=False)

    # tồn kho chỉ giảm khi giám sát xác nhận nhận hàng (StockIssue)
    stock = db.Column(db.Numeric(18, 3), default=0, nullable=False)
    min_stock = db.Column(db.Numeric(18, 3), default=0, nullable=False)
    price = db.Column(db.Numeric(18, 2), default=0)
    is_active = db.Column(db.Boolean, default=True)

    __table_args__ = (db.CheckConstraint("stock >= 0", name="ck_material_stock"),)
