# utils/auth.py
from functools import wraps
from flask import abort
from flask_login import current_user
from db.models.user import UserRole

# cấp duyệt -> role được duyệt (ADMIN duyệt được mọi cấp)
REQUEST_APPROVAL_ROLES = {
    1: (UserRole.PURCHASING_MANAGER,),
    2: (UserRole.ACCOUNTANT,),
    3: (UserRole.DIRECTOR,),
}
PO_APPROVAL_ROLES = REQUEST_APPROVAL_ROLES

_LEVEL_MAPS = {"request": REQUEST_APPROVAL_ROLES, "po": PO_APPROVAL_ROLES}


def roles_required(*roles):
    def deco(fn):
        @wraps(fn)
        def inner(*a, **kw):
            if not current_user.is_authenticated:
                abort(401)
            if not current_user.has_role(*roles):
                abort(403)
            return fn(*a, **kw)

        return inner

    return deco


def approval_predicate(user, kind: str = "request"):
    """Trả về can_act(level) cho chuỗi duyệt, dựa trên role của user."""
    level_map = _LEVEL_MAPS[kind]

    def can_act(level: int) -> bool:
        if user is None:
            return False
        if user.has_role(UserRole.ADMIN):
            return True
        return user.has_role(*level_map.get(level, ()))

    return can_act


R = UserRole

# nhóm quyền theo chức năng (ADMIN luôn có mặt)
CREATE_REQUEST = (R.PURCHASING_STAFF, R.SUPERVISOR, R.ADMIN)
VIEW_REQUEST = (
    R.ADMIN, R.PURCHASING_MANAGER, R.PURCHASING_STAFF, R.ACCOUNTANT, R.DIRECTOR, R.SUPERVISOR,
)
APPROVERS = (R.PURCHASING_MANAGER, R.ACCOUNTANT, R.DIRECTOR, R.ADMIN)

ISSUE_STOCK = (R.PURCHASING_MANAGER, R.PURCHASING_STAFF, R.ADMIN)
RECEIVE_STOCK = (R.SUPERVISOR, R.ADMIN)

MANAGE_RFQ = (R.PURCHASING_MANAGER, R.ADMIN)
VIEW_RFQ = (R.ADMIN, R.PURCHASING_MANAGER, R.PURCHASING_STAFF, R.SUPPLIER)
SUBMIT_QUOTATION = (R.SUPPLIER, R.ADMIN)
VIEW_QUOTATION = (R.ADMIN, R.PURCHASING_MANAGER, R.PURCHASING_STAFF, R.SUPPLIER)

MANAGE_PO = (R.PURCHASING_MANAGER, R.ADMIN)
VIEW_PO = (
    R.ADMIN, R.PURCHASING_MANAGER, R.PURCHASING_STAFF, R.ACCOUNTANT, R.DIRECTOR, R.SUPERVISOR,
)
TRACK_DELIVERY = (R.PURCHASING_MANAGER, R.PURCHASING_STAFF, R.SUPERVISOR, R.ADMIN)
CHECK_DELIVERY = (R.SUPERVISOR, R.ADMIN)

MANAGE_PAYMENT = (R.ACCOUNTANT, R.ADMIN)
VIEW_PAYMENT = (R.ADMIN, R.ACCOUNTANT, R.DIRECTOR)
EVALUATE_SUPPLIER = (R.PURCHASING_MANAGER, R.SUPERVISOR, R.ADMIN)

MANAGE_USERS = (R.ADMIN,)
MANAGE_PROJECTS = (R.ADMIN,)
VIEW_PROJECTS = (R.ADMIN, R.DIRECTOR, R.PURCHASING_MANAGER, R.QUOTA_OFFICE, R.SUPERVISOR, R.PURCHASING_STAFF)
MANAGE_MATERIALS = (R.ADMIN,)
VIEW_MATERIALS = (
    R.ADMIN, R.PURCHASING_MANAGER, R.PURCHASING_STAFF, R.SUPERVISOR, R.QUOTA_OFFICE,
)
MANAGE_SUPPLIERS = (R.ADMIN, R.PURCHASING_MANAGER)
VIEW_SUPPLIERS = (R.ADMIN, R.PURCHASING_MANAGER, R.PURCHASING_STAFF)
MANAGE_QUOTAS = (R.ADMIN, R.QUOTA_OFFICE)
VIEW_QUOTAS = (R.ADMIN, R.QUOTA_OFFICE, R.SUPERVISOR, R.PURCHASING_STAFF, R.PURCHASING_MANAGER)
