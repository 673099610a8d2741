from flask import Blueprint, jsonify, request, abort
from flask_login import login_user, logout_user, current_user, login_required
from dao import user as user_dao
from utils import serialize
from utils.auth import MANAGE_USERS, roles_required

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or {}
    user = user_dao.authenticate(data.get("username", ""), data.get("password", ""))
    if not user:
        abort(401, description="Sai tài khoản hoặc mật khẩu")
    if not user.is_active:
        abort(403, description="Tài khoản đã bị khóa")

    login_user(user, remember=True)
    return jsonify(serialize.user(user))


@auth_bp.route("/logout", methods=["POST"])
def logout():
    if current_user.is_authenticated:
        logout_user()
    return jsonify({"ok": True})


@auth_bp.route("/me")
@login_required
def me():
    return jsonify(serialize.user(current_user))


@auth_bp.route("/users")
@login_required
@roles_required(*MANAGE_USERS)
def users_list():
    return jsonify([serialize.user(u) for u in user_dao.list_users()])


@auth_bp.route("/users", methods=["POST"])
@login_required
@roles_required(*MANAGE_USERS)
def users_add():
    data = request.get_json(silent=True) or {}
    u = user_dao.create_user(
        data.get("username"),
        data.get("password"),
        data.get("role"),
        full_name=data.get("full_name"),
        email=data.get("email"),
    )
    return jsonify(serialize.user(u)), 201


@auth_bp.route("/users/<int:user_id>", methods=["PUT"])
@login_required
@roles_required(*MANAGE_USERS)
def users_edit(user_id):
    data = request.get_json(silent=True) or {}
    return jsonify(serialize.user(user_dao.update_user(user_id, **data)))
