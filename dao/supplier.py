from typing import Optional, List
from sqlalchemy.exc import SQLAlchemyError
from configs import db
from db.models.supplier import Supplier
from db.models.purchase import PurchaseOrder
from utils.errors import AlreadyExistsError, InvalidStateError, NotFoundError, ValidationError

_EDITABLE = ("name", "email", "phone", "address", "tax_code", "is_active", "user_id")


def list_suppliers() -> List[Supplier]:
    return Supplier.query.filter_by(is_active=True).order_by(Supplier.name.asc()).all()


def get_supplier(supplier_id: int) -> Supplier:
    s = db.session.get(Supplier, int(supplier_id))
    if not s:
        raise NotFoundError("Supplier", supplier_id)
    return s


def get_supplier_for_user(user_id: int) -> Optional[Supplier]:
    """Tài khoản NCC -> NCC tương ứng."""
    return Supplier.query.filter_by(user_id=int(user_id)).first()


def create_supplier(
    code: str,
    name: str,
    address: str | None = None,
    phone: str | None = None,
    email: str | None = None,
    tax_code: str | None = None,
    user_id: int | None = None,
) -> Supplier:
    if not (code or "").strip() or not (name or "").strip():
        raise ValidationError("Mã và tên nhà cung cấp là bắt buộc.")
    if Supplier.query.filter_by(code=code.strip()).first():
        raise AlreadyExistsError("Mã nhà cung cấp đã tồn tại.", code=code.strip())
    s = Supplier(
        code=code.strip(),
        name=name.strip(),
        address=address,
        phone=phone,
        email=email,
        tax_code=tax_code,
        user_id=int(user_id) if user_id else None,
    )
    db.session.add(s)
    _commit()
    return s


def update_supplier(supplier_id: int, **fields) -> Supplier:
    s = get_supplier(supplier_id)
    for k, v in fields.items():
        if k in _EDITABLE:
            setattr(s, k, v)
    _commit()
    return s


def delete_supplier(supplier_id: int) -> None:
    """NCC đã có PO thì chỉ ngưng hoạt động, không xóa."""
    sup = get_supplier(supplier_id)
    cnt = PurchaseOrder.query.filter_by(supplier_id=sup.id).count()
    if cnt > 0:
        raise InvalidStateError(
            "Nhà cung cấp đã có đơn hàng, không thể xóa.", purchase_orders=cnt
        )
    db.session.delete(sup)
    _commit()


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
