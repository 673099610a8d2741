from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash
from configs import db
from db.models.user import User, UserRole
from utils.errors import AlreadyExistsError, NotFoundError, ValidationError


def list_users() -> List[User]:
    return User.query.order_by(User.username.asc()).all()


def get_user(user_id: int) -> User:
    u = db.session.get(User, int(user_id))
    if not u:
        raise NotFoundError("User", user_id)
    return u


def authenticate(username: str, password: str) -> Optional[User]:
    user = User.query.filter_by(username=(username or "").strip()).first()
    if not user or not check_password_hash(user.password_hash, password or ""):
        return None
    return user


def _to_role(value) -> UserRole:
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(str(value).strip().lower())
    except ValueError:
        raise ValidationError("role không hợp lệ.", role=value)


def create_user(
    username: str,
    password: str,
    role,
    full_name: str | None = None,
    email: str | None = None,
) -> User:
    if not (username or "").strip() or not password:
        raise ValidationError("Tên đăng nhập và mật khẩu là bắt buộc.")
    if User.query.filter_by(username=username.strip()).first():
        raise AlreadyExistsError("Tên đăng nhập đã tồn tại.", username=username.strip())
    u = User(
        username=username.strip(),
        password_hash=generate_password_hash(password),
        role=_to_role(role),
        full_name=full_name,
        email=email,
        is_active=True,
    )
    db.session.add(u)
    _commit()
    return u


def update_user(user_id: int, **fields) -> User:
    u = get_user(user_id)
    if "password" in fields and fields["password"]:
        u.password_hash = generate_password_hash(fields.pop("password"))
    if "role" in fields and fields["role"]:
        u.role = _to_role(fields.pop("role"))
    for k in ("full_name", "email", "is_active"):
        if k in fields:
            setattr(u, k, fields[k])
    _commit()
    return u


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
