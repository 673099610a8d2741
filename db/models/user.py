# db/models/user.py
import enum
from configs import db
from flask_login import UserMixin


class UserRole(enum.Enum):
    ADMIN = "admin"
    PURCHASING_MANAGER = "truong_phong_mh"  # Trưởng phòng mua hàng (duyệt cấp 1)
    PURCHASING_STAFF = "nhan_vien_mh"  # Nhân viên mua hàng
    ACCOUNTANT = "ke_toan"  # Kế toán trưởng (duyệt cấp 2, thanh toán)
    DIRECTOR = "giam_doc"  # Giám đốc (duyệt cấp 3)
    SUPERVISOR = "giam_sat"  # Giám sát công trình (nhận hàng)
    SUPPLIER = "ncc"  # Nhà cung cấp
    QUOTA_OFFICE = "phong_os"  # Phòng OS (định mức BOQ)


class User(db.Model, UserMixin):
    __tablename__ = "user_account"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255))
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(120))
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    role = db.Column(
        db.Enum(UserRole), default=UserRole.PURCHASING_STAFF, nullable=False
    )

    def get_id(self):
        return str(self.id)

    def has_role(self, *roles: UserRole):
        """Kiểm tra xem user có 1 trong các role truyền vào"""
        return self.role in roles
