from flask import Blueprint, jsonify, request
from flask_login import login_required
from dao import evaluation as evaluation_dao, supplier as supplier_dao
from utils import serialize
from utils.auth import MANAGE_SUPPLIERS, VIEW_SUPPLIERS, roles_required

supplier_bp = Blueprint("supplier", __name__, url_prefix="/api/suppliers")


@supplier_bp.route("")
@login_required
@roles_required(*VIEW_SUPPLIERS)
def suppliers_list():
    return jsonify([serialize.supplier(s) for s in supplier_dao.list_suppliers()])


@supplier_bp.route("/<int:supplier_id>")
@login_required
@roles_required(*VIEW_SUPPLIERS)
def suppliers_detail(supplier_id):
    s = supplier_dao.get_supplier(supplier_id)
    out = serialize.supplier(s)
    out["evaluations"] = [serialize.evaluation(e) for e in evaluation_dao.list_for_supplier(s.id)]
    return jsonify(out)


@supplier_bp.route("", methods=["POST"])
@login_required
@roles_required(*MANAGE_SUPPLIERS)
def suppliers_add():
    data = request.get_json(silent=True) or {}
    s = supplier_dao.create_supplier(
        code=data.get("code"),
        name=data.get("name"),
        address=data.get("address"),
        phone=data.get("phone"),
        email=data.get("email"),
        tax_code=data.get("tax_code"),
        user_id=data.get("user_id"),
    )
    return jsonify(serialize.supplier(s)), 201


@supplier_bp.route("/<int:supplier_id>", methods=["PUT"])
@login_required
@roles_required(*MANAGE_SUPPLIERS)
def suppliers_edit(supplier_id):
    data = request.get_json(silent=True) or {}
    return jsonify(serialize.supplier(supplier_dao.update_supplier(supplier_id, **data)))


@supplier_bp.route("/<int:supplier_id>", methods=["DELETE"])
@login_required
@roles_required(*MANAGE_SUPPLIERS)
def suppliers_delete(supplier_id):
    supplier_dao.delete_supplier(supplier_id)
    return jsonify({"ok": True})
