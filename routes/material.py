from flask import Blueprint, jsonify, request
from flask_login import login_required
from dao import material as material_dao
from utils import serialize
from utils.auth import MANAGE_MATERIALS, VIEW_MATERIALS, roles_required

material_bp = Blueprint("material", __name__, url_prefix="/api/materials")


@material_bp.route("")
@login_required
@roles_required(*VIEW_MATERIALS)
def materials_list():
    if request.args.get("low_stock") in ("1", "true"):
        items = material_dao.list_low_stock()
    else:
        items = material_dao.list_materials(request.args.get("category"))
    return jsonify([serialize.material(m) for m in items])


@material_bp.route("/<int:material_id>")
@login_required
@roles_required(*VIEW_MATERIALS)
def materials_detail(material_id):
    return jsonify(serialize.material(material_dao.get_material(material_id)))


@material_bp.route("", methods=["POST"])
@login_required
@roles_required(*MANAGE_MATERIALS)
def materials_add():
    data = request.get_json(silent=True) or {}
    m = material_dao.create_material(
        code=data.get("code"),
        name=data.get("name"),
        unit=data.get("unit"),
        category=data.get("category"),
        stock=data.get("stock", 0),
        min_stock=data.get("min_stock", 0),
        price=data.get("price", 0),
    )
    return jsonify(serialize.material(m)), 201


@material_bp.route("/<int:material_id>", methods=["PUT"])
@login_required
@roles_required(*MANAGE_MATERIALS)
def materials_edit(material_id):
    data = request.get_json(silent=True) or {}
    return jsonify(serialize.material(material_dao.update_material(material_id, **data)))


@material_bp.route("/<int:material_id>", methods=["DELETE"])
@login_required
@roles_required(*MANAGE_MATERIALS)
def materials_delete(material_id):
    material_dao.delete_material(material_id)
    return jsonify({"ok": True})
