from flask import Blueprint, jsonify, request
from flask_login import login_required
from dao import project as project_dao, quota as quota_dao
from utils import serialize
from utils.auth import MANAGE_PROJECTS, VIEW_PROJECTS, VIEW_QUOTAS, roles_required

project_bp = Blueprint("project", __name__, url_prefix="/api/projects")


@project_bp.route("")
@login_required
@roles_required(*VIEW_PROJECTS)
def projects_list():
    active = request.args.get("active") in ("1", "true")
    return jsonify([serialize.project(p) for p in project_dao.list_projects(active)])


@project_bp.route("/<int:project_id>")
@login_required
@roles_required(*VIEW_PROJECTS)
def projects_detail(project_id):
    return jsonify(serialize.project(project_dao.get_project(project_id)))


@project_bp.route("/<int:project_id>/quotas")
@login_required
@roles_required(*VIEW_QUOTAS)
def projects_quotas(project_id):
    project_dao.get_project(project_id)
    return jsonify([serialize.quota(q) for q in quota_dao.list_project_quotas(project_id)])


@project_bp.route("", methods=["POST"])
@login_required
@roles_required(*MANAGE_PROJECTS)
def projects_add():
    data = request.get_json(silent=True) or {}
    p = project_dao.create_project(data.get("code"), data.get("name"), data.get("address"))
    return jsonify(serialize.project(p)), 201


@project_bp.route("/<int:project_id>", methods=["PUT"])
@login_required
@roles_required(*MANAGE_PROJECTS)
def projects_edit(project_id):
    data = request.get_json(silent=True) or {}
    return jsonify(serialize.project(project_dao.update_project(project_id, **data)))
