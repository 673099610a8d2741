from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from utils.errors import ValidationError

QTY = Decimal("0.001")
MONEY = Decimal("0.01")


def to_decimal(value, field: str = "quantity", *, positive=False, allow_zero=True) -> Decimal:
    try:
        d = Decimal(str(value)) if value is not None and value != "" else None
    except (InvalidOperation, ValueError):
        d = None
    if d is None or not d.is_finite():
        raise ValidationError(f"{field} không hợp lệ.", field=field, value=value)
    if positive and d <= 0:
        raise ValidationError(f"{field} phải > 0.", field=field, value=value)
    if not allow_zero and d == 0:
        raise ValidationError(f"{field} phải khác 0.", field=field, value=value)
    if d < 0:
        raise ValidationError(f"{field} không được âm.", field=field, value=value)
    return d


def money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(MONEY, rounding=ROUND_HALF_UP)


def parse_datetime(value, field: str = "date", required=False):
    """Nhận datetime/date hoặc chuỗi ISO (YYYY-MM-DD hoặc YYYY-MM-DDTHH:MM[:SS])."""
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"Thiếu {field}.", field=field)
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    raw = str(value).strip()
    if raw.endswith("Z"):
        raw = raw[:-1]
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"{field} không hợp lệ.", field=field, value=value)
    return parsed.replace(tzinfo=None) if parsed.tzinfo else parsed


def to_id(value, field: str = "id") -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} không hợp lệ.", field=field, value=value)


_TRUE = ("true", "1", "yes", "on")
_FALSE = ("false", "0", "no", "off", "")


def to_bool(value, field: str = "flag") -> bool:
    """Nhận bool thật hoặc chuỗi "true"/"false" từ form/JSON; chuỗi lạ -> ValidationError."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    raw = str(value).strip().lower()
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ValidationError(f"{field} không hợp lệ.", field=field, value=value)
