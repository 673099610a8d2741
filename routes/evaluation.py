from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from dao import evaluation as evaluation_dao
from utils import serialize
from utils.auth import EVALUATE_SUPPLIER, VIEW_SUPPLIERS, roles_required

evaluation_bp = Blueprint("evaluation", __name__, url_prefix="/api/evaluations")


@evaluation_bp.route("", methods=["POST"])
@login_required
@roles_required(*EVALUATE_SUPPLIER)
def evaluations_add():
    data = request.get_json(silent=True) or {}
    ev = evaluation_dao.create_evaluation(
        data.get("po_id"),
        current_user.id,
        data.get("price_score"),
        data.get("quality_score"),
        data.get("delivery_score"),
        data.get("support_score"),
        comment=data.get("comment"),
    )
    return jsonify(serialize.evaluation(ev)), 201


@evaluation_bp.route("/supplier/<int:supplier_id>")
@login_required
@roles_required(*set(VIEW_SUPPLIERS) | set(EVALUATE_SUPPLIER))
def evaluations_for_supplier(supplier_id):
    return jsonify(
        [serialize.evaluation(e) for e in evaluation_dao.list_for_supplier(supplier_id)]
    )
