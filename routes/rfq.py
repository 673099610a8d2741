from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from dao import quotation as quotation_dao, rfq as rfq_dao
from utils import serialize
from utils.auth import MANAGE_RFQ, VIEW_QUOTATION, VIEW_RFQ, roles_required

rfq_bp = Blueprint("rfq", __name__, url_prefix="/api/rfqs")


@rfq_bp.route("")
@login_required
@roles_required(*VIEW_RFQ)
def rfqs_list():
    return jsonify([serialize.rfq(r) for r in rfq_dao.list_rfqs()])


@rfq_bp.route("/<int:rfq_id>")
@login_required
@roles_required(*VIEW_RFQ)
def rfqs_detail(rfq_id):
    return jsonify(serialize.rfq(rfq_dao.get_rfq(rfq_id), with_quotations=True))


@rfq_bp.route("/check-stock", methods=["POST"])
@login_required
@roles_required(*MANAGE_RFQ)
def rfqs_check_stock():
    data = request.get_json(silent=True) or {}
    return jsonify(serialize.plain(rfq_dao.stock_preview(data.get("request_id"))))


@rfq_bp.route("", methods=["POST"])
@login_required
@roles_required(*MANAGE_RFQ)
def rfqs_add():
    data = request.get_json(silent=True) or {}
    r = rfq_dao.create_rfq(
        data.get("request_id"),
        data.get("supplier_ids") or [],
        data.get("deadline"),
        description=data.get("description"),
        created_by_id=current_user.id,
    )
    return jsonify(serialize.rfq(r)), 201


@rfq_bp.route("/<int:rfq_id>/compare")
@login_required
@roles_required(*VIEW_QUOTATION)
def rfqs_compare(rfq_id):
    rfq_dao.get_rfq(rfq_id)
    return jsonify(serialize.plain(quotation_dao.compare(rfq_id)))
