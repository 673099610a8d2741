# seed.py
"""
Dữ liệu mẫu: chạy bằng ``flask --app app:create_app seed``.
Chạy lại nhiều lần không tạo trùng (tra theo username / code).
"""

import logging
from decimal import Decimal

from werkzeug.security import generate_password_hash
from configs import db
from db.models.user import User, UserRole
from db.models.project import Project
from db.models.material import Material
from db.models.supplier import Supplier
from db.models.quota import MaterialQuota

logger = logging.getLogger(__name__)

DEFAULT_PASSWORD = "123456"


# -------- Users --------
def seed_users():
    users = [
        ("admin", "admin123", "Admin", UserRole.ADMIN),
        ("truongphong", DEFAULT_PASSWORD, "Nguyễn Văn A", UserRole.PURCHASING_MANAGER),
        ("nhanvien", DEFAULT_PASSWORD, "Trần Thị B", UserRole.PURCHASING_STAFF),
        ("ketoan", DEFAULT_PASSWORD, "Lê Văn C", UserRole.ACCOUNTANT),
        ("giamdoc", DEFAULT_PASSWORD, "Phạm Thị D", UserRole.DIRECTOR),
        ("giamsat", DEFAULT_PASSWORD, "Hoàng Văn E", UserRole.SUPERVISOR),
        ("phongos", DEFAULT_PASSWORD, "Đỗ Thị F", UserRole.QUOTA_OFFICE),
        ("ncc1", DEFAULT_PASSWORD, "Công ty TNHH Vật liệu XD ABC", UserRole.SUPPLIER),
        ("ncc2", DEFAULT_PASSWORD, "Công ty CP Thép XYZ", UserRole.SUPPLIER),
        ("ncc3", DEFAULT_PASSWORD, "Công ty TNHH Xi măng DEF", UserRole.SUPPLIER),
    ]
    for username, password, full_name, role in users:
        if User.query.filter_by(username=username).first():
            continue
        db.session.add(
            User(
                username=username,
                email=f"{username}@demo.com",
                password_hash=generate_password_hash(password),
                full_name=full_name,
                role=role,
                is_active=True,
            )
        )
    db.session.commit()
    logger.info("Users seeded")


# -------- Suppliers --------
def seed_suppliers():
    suppliers = [
        ("NCC001", "Công ty TNHH Vật liệu XD ABC", "0123456789", "123 Đường ABC, Quận 1, TP.HCM", "ncc1", "4.5"),
        ("NCC002", "Công ty CP Thép XYZ", "0123456790", "456 Đường XYZ, Quận 2, TP.HCM", "ncc2", "4.2"),
        ("NCC003", "Công ty TNHH Xi măng DEF", "0123456791", "789 Đường DEF, Quận 3, TP.HCM", "ncc3", "4.8"),
    ]
    for code, name, tax_code, address, username, rating in suppliers:
        if Supplier.query.filter_by(code=code).first():
            continue
        user = User.query.filter_by(username=username).first()
        db.session.add(
            Supplier(
                code=code,
                name=name,
                tax_code=tax_code,
                address=address,
                email=f"{username}@demo.com",
                rating=Decimal(rating),
                user_id=user.id if user else None,
            )
        )
    db.session.commit()
    logger.info("Suppliers seeded")


# -------- Projects --------
def seed_projects():
    projects = [
        ("DA001", "Dự án Chung cư Sunrise", "Quận 7, TP.HCM"),
        ("DA002", "Dự án Nhà máy ABC", "KCN Tân Tạo, TP.HCM"),
        ("DA003", "Dự án Cầu Vượt XYZ", "Thủ Đức, TP.HCM"),
    ]
    for code, name, address in projects:
        if not Project.query.filter_by(code=code).first():
            db.session.add(Project(code=code, name=name, address=address))
    db.session.commit()
    logger.info("Projects seeded")


# -------- Materials --------
def seed_materials():
    materials = [
        # code, name, category, unit, price, stock, min_stock
        ("VL001", "Xi măng PCB40", "Xi măng", "bao", 95000, 500, 100),
        ("VL002", "Cát xây dựng", "Vật liệu xây dựng", "m3", 350000, 50, 20),
        ("VL003", "Đá 1x2", "Vật liệu xây dựng", "m3", 420000, 30, 15),
        ("THEP001", "Thép D10", "Thép xây dựng", "kg", 18000, 1500, 500),
        ("THEP002", "Thép D16", "Thép xây dựng", "kg", 17500, 1500, 500),
        ("VL004", "Gạch block", "Vật liệu xây dựng", "viên", 3500, 10000, 2000),
        ("DIEN001", "Dây điện 2x2.5", "Thiết bị điện", "m", 12000, 800, 200),
    ]
    for code, name, category, unit, price, stock, min_stock in materials:
        m = Material.query.filter_by(code=code).first()
        if m:
            continue
        db.session.add(
            Material(
                code=code,
                name=name,
                category=category,
                unit=unit,
                price=Decimal(price),
                stock=Decimal(stock),
                min_stock=Decimal(min_stock),
            )
        )
    db.session.commit()
    logger.info("Materials seeded")


# -------- Quotas (BOQ) --------
def seed_quotas():
    quotas = [
        ("DA001", "VL001", 5000, 1200),
        ("DA001", "THEP001", 20000, 0),
        ("DA002", "VL001", 3000, 0),
    ]
    admin = User.query.filter_by(username="phongos").first()
    for project_code, material_code, max_qty, used in quotas:
        p = Project.query.filter_by(code=project_code).first()
        m = Material.query.filter_by(code=material_code).first()
        if not p or not m:
            continue
        if MaterialQuota.query.filter_by(project_id=p.id, material_id=m.id).first():
            continue
        db.session.add(
            MaterialQuota(
                project_id=p.id,
                material_id=m.id,
                max_quantity=Decimal(max_qty),
                used_quantity=Decimal(used),
                created_by_id=admin.id if admin else None,
            )
        )
    db.session.commit()
    logger.info("Quotas seeded")


def seed_all():
    seed_users()
    seed_suppliers()
    seed_projects()
    seed_materials()
    seed_quotas()
