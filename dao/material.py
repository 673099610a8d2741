from decimal import Decimal
from typing import Optional, List
from sqlalchemy.exc import SQLAlchemyError
from configs import db
from db.models.material import Material
from utils.errors import AlreadyExistsError, NotFoundError, ValidationError
from utils.numbers import to_decimal

_EDITABLE = ("name", "category", "unit", "stock", "min_stock", "price", "is_active")
_NUMERIC = ("stock", "min_stock", "price")


def list_materials(category: Optional[str] = None) -> List[Material]:
    q = Material.query
    if category:
        q = q.filter(Material.category == category)
    return q.order_by(Material.code.asc()).all()


def list_low_stock() -> List[Material]:
    return (
        Material.query.filter(Material.stock <= Material.min_stock)
        .order_by(Material.code.asc())
        .all()
    )


def get_material(material_id: int) -> Material:
    m = db.session.get(Material, int(material_id))
    if not m:
        raise NotFoundError("Material", material_id)
    return m


def create_material(
    code: str,
    name: str,
    unit: str,
    category: Optional[str] = None,
    stock=0,
    min_stock=0,
    price=0,
) -> Material:
    if not (code or "").strip() or not (name or "").strip() or not (unit or "").strip():
        raise ValidationError("Mã, tên và đơn vị tính là bắt buộc.")
    if Material.query.filter_by(code=code.strip()).first():
        raise AlreadyExistsError("Mã vật tư đã tồn tại.", code=code.strip())
    m = Material(
        code=code.strip(),
        name=name.strip(),
        unit=unit.strip(),
        category=category,
        stock=to_decimal(stock or 0, "stock"),
        min_stock=to_decimal(min_stock or 0, "min_stock"),
        price=to_decimal(price or 0, "price"),
    )
    db.session.add(m)
    _commit()
    return m


def update_material(material_id: int, **fields) -> Material:
    """Sửa thông tin vật tư. Tồn kho chỉ được nhập thêm, giảm tồn đi qua xác nhận xuất kho."""
    m = get_material(material_id)
    changes = {}
    for k, v in fields.items():
        if k not in _EDITABLE:
            continue
        if k in _NUMERIC and v is not None:
            v = to_decimal(v, k)
        changes[k] = v

    new_stock = changes.get("stock")
    if new_stock is not None and new_stock < Decimal(str(m.stock or 0)):
        raise ValidationError(
            "Không được giảm tồn kho trực tiếp.",
            material_id=m.id,
            stock=m.stock,
            new_stock=new_stock,
        )
    for k, v in changes.items():
        setattr(m, k, v)
    _commit()
    return m


def delete_material(material_id: int) -> None:
    m = get_material(material_id)
    db.session.delete(m)
    _commit()


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
