from configs import db


class Supplier(db.Model):
    __tablename__ = "supplier"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    code = db.Column(db.String(40), unique=True, nullable=False)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255))
    phone = db.Column(db.String(40))
    address = db.Column(db.String(255))
    tax_code = db.Column(db.String(40))
    rating = db.Column(db.Numeric(3, 2), default=0)
    is_active = db.Column(db.Boolean, default=True)

    # tài khoản đăng nhập của NCC (gửi báo giá)
    user_id = db.Column(db.Integer, db.ForeignKey("user_account.id"), unique=True)
    user = db.relationship("User")
