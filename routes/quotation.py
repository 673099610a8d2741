from flask import Blueprint, abort, jsonify, request
from flask_login import login_required, current_user
from db.models.user import UserRole
from dao import quotation as quotation_dao, supplier as supplier_dao
from utils import serialize
from utils.auth import MANAGE_RFQ, SUBMIT_QUOTATION, VIEW_QUOTATION, roles_required

quotation_bp = Blueprint("quotation", __name__, url_prefix="/api/quotations")


def _own_supplier_id():
    """Tài khoản NCC chỉ được gửi báo giá cho chính mình."""
    s = supplier_dao.get_supplier_for_user(current_user.id)
    if s is None:
        abort(403, description="Tài khoản chưa gắn với nhà cung cấp nào")
    return s.id


@quotation_bp.route("")
@login_required
@roles_required(*VIEW_QUOTATION)
def quotations_list():
    rfq_id = request.args.get("rfq_id")
    rows = quotation_dao.list_for_rfq(rfq_id) if rfq_id else quotation_dao.list_quotations()
    if current_user.has_role(UserRole.SUPPLIER):
        own = _own_supplier_id()
        rows = [q for q in rows if q.supplier_id == own]
    return jsonify([serialize.quotation(q) for q in rows])


@quotation_bp.route("/<int:quotation_id>")
@login_required
@roles_required(*VIEW_QUOTATION)
def quotations_detail(quotation_id):
    q = quotation_dao.get_quotation(quotation_id)
    if current_user.has_role(UserRole.SUPPLIER) and q.supplier_id != _own_supplier_id():
        abort(403)
    return jsonify(serialize.quotation(q))


@quotation_bp.route("", methods=["POST"])
@login_required
@roles_required(*SUBMIT_QUOTATION)
def quotations_add():
    data = request.get_json(silent=True) or {}
    if current_user.has_role(UserRole.SUPPLIER):
        supplier_id = _own_supplier_id()
    else:
        supplier_id = data.get("supplier_id")
    q = quotation_dao.submit_quotation(
        data.get("rfq_id"),
        supplier_id,
        data.get("items") or [],
        delivery_time=data.get("delivery_time"),
        payment_terms=data.get("payment_terms"),
        valid_until=data.get("valid_until"),
        note=data.get("note"),
    )
    return jsonify(serialize.quotation(q)), 201


@quotation_bp.route("/<int:quotation_id>/select", methods=["POST"])
@login_required
@roles_required(*MANAGE_RFQ)
def quotations_select(quotation_id):
    q = quotation_dao.select_quotation(quotation_id)
    return jsonify(serialize.quotation(q))
