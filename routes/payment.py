from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from dao import payment as payment_dao
from utils import serialize
from utils.auth import MANAGE_PAYMENT, VIEW_PAYMENT, roles_required

payment_bp = Blueprint("payment", __name__, url_prefix="/api/payments")


@payment_bp.route("")
@login_required
@roles_required(*VIEW_PAYMENT)
def payments_list():
    return jsonify(
        [serialize.payment(p) for p in payment_dao.list_payments(request.args.get("status"))]
    )


@payment_bp.route("/check-documents", methods=["POST"])
@login_required
@roles_required(*MANAGE_PAYMENT)
def payments_check_documents():
    data = request.get_json(silent=True) or {}
    return jsonify(
        payment_dao.check_documents(
            data.get("po_id"), data.get("payment_type"), data.get("vat_invoice_file")
        )
    )


@payment_bp.route("", methods=["POST"])
@login_required
@roles_required(*MANAGE_PAYMENT)
def payments_add():
    data = request.get_json(silent=True) or {}
    p = payment_dao.create_payment(
        data.get("po_id"),
        amount=data.get("amount"),
        method=data.get("method"),
        payment_type=data.get("payment_type"),
        invoice_number=data.get("invoice_number"),
        vat_invoice_file=data.get("vat_invoice_file"),
        delivery_note=data.get("delivery_note"),
        acceptance_note=data.get("acceptance_note"),
        note=data.get("note"),
        created_by_id=current_user.id,
    )
    return jsonify(serialize.payment(p)), 201


@payment_bp.route("/<int:payment_id>/approve", methods=["POST"])
@login_required
@roles_required(*MANAGE_PAYMENT)
def payments_approve(payment_id):
    data = request.get_json(silent=True) or {}
    p = payment_dao.approve_payment(
        payment_id, current_user.id, data.get("status") or data.get("decision"), data.get("note")
    )
    return jsonify(serialize.payment(p))
