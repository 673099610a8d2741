from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from dao import quota as quota_dao
from utils import serialize
from utils.auth import MANAGE_QUOTAS, VIEW_QUOTAS, roles_required

quota_bp = Blueprint("quota", __name__, url_prefix="/api/quotas")


@quota_bp.route("")
@login_required
@roles_required(*VIEW_QUOTAS)
def quotas_list():
    project_id = request.args.get("project_id")
    rows = quota_dao.list_project_quotas(project_id) if project_id else quota_dao.list_quotas()
    return jsonify([serialize.quota(q) for q in rows])


@quota_bp.route("", methods=["POST"])
@login_required
@roles_required(*MANAGE_QUOTAS)
def quotas_upsert():
    data = request.get_json(silent=True) or {}
    q = quota_dao.upsert_quota(
        data.get("project_id"),
        data.get("material_id"),
        data.get("max_quantity"),
        created_by_id=current_user.id,
    )
    return jsonify(serialize.quota(q))


@quota_bp.route("/<int:quota_id>", methods=["DELETE"])
@login_required
@roles_required(*MANAGE_QUOTAS)
def quotas_delete(quota_id):
    quota_dao.delete_quota(quota_id)
    return jsonify({"ok": True})
