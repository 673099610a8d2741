# routes/purchases.py
from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from dao import (
    delivery as delivery_dao,
    payment as payment_dao,
    purchase as po_dao,
    tracking as tracking_dao,
)
from utils import serialize
from utils.auth import (
    APPROVERS,
    MANAGE_PO,
    VIEW_PAYMENT,
    VIEW_PO,
    approval_predicate,
    roles_required,
)

purchase_bp = Blueprint("purchase", __name__, url_prefix="/api/purchase-orders")


@purchase_bp.route("")
@login_required
@roles_required(*VIEW_PO)
def purchases_list():
    rows = po_dao.list_purchase_orders(
        status=request.args.get("status"), project_id=request.args.get("project_id")
    )
    return jsonify([serialize.purchase_order(po) for po in rows])


@purchase_bp.route("/<int:po_id>")
@login_required
@roles_required(*VIEW_PO)
def purchases_detail(po_id):
    return jsonify(serialize.purchase_order(po_dao.get_po(po_id), detail=True))


@purchase_bp.route("", methods=["POST"])
@login_required
@roles_required(*MANAGE_PO)
def purchases_add():
    data = request.get_json(silent=True) or {}
    po = po_dao.create_from_quotation(
        data.get("quotation_id"),
        delivery_address=data.get("delivery_address"),
        delivery_date=data.get("delivery_date"),
        note=data.get("note"),
        created_by_id=current_user.id,
    )
    return jsonify(serialize.purchase_order(po, detail=True)), 201


@purchase_bp.route("/<int:po_id>/approve", methods=["POST"])
@login_required
@roles_required(*APPROVERS)
def purchases_approve(po_id):
    data = request.get_json(silent=True) or {}
    approval = po_dao.act_on_approval(
        po_id,
        current_user.id,
        data.get("status") or data.get("decision"),
        comment=data.get("comment"),
        signature=data.get("signature"),
        can_act=approval_predicate(current_user, "po"),
    )
    return jsonify(
        {
            "approval": serialize.approval(approval),
            "purchase_order": serialize.purchase_order(po_dao.get_po(po_id), detail=True),
        }
    )


@purchase_bp.route("/<int:po_id>/send", methods=["POST"])
@login_required
@roles_required(*MANAGE_PO)
def purchases_send(po_id):
    return jsonify(serialize.purchase_order(po_dao.send_po(po_id)))


@purchase_bp.route("/<int:po_id>/cancel", methods=["POST"])
@login_required
@roles_required(*MANAGE_PO)
def purchases_cancel(po_id):
    data = request.get_json(silent=True) or {}
    return jsonify(serialize.purchase_order(po_dao.cancel_po(po_id, data.get("reason"))))


@purchase_bp.route("/<int:po_id>/tracking")
@login_required
@roles_required(*VIEW_PO)
def purchases_tracking(po_id):
    return jsonify([serialize.tracking(t) for t in tracking_dao.list_events(po_id)])


@purchase_bp.route("/<int:po_id>/delivery")
@login_required
@roles_required(*VIEW_PO)
def purchases_delivery(po_id):
    po_dao.get_po(po_id)
    return jsonify(serialize.delivery(delivery_dao.get_delivery_for_po(po_id)))


@purchase_bp.route("/<int:po_id>/payment")
@login_required
@roles_required(*VIEW_PAYMENT)
def purchases_payment(po_id):
    po_dao.get_po(po_id)
    return jsonify(serialize.payment(payment_dao.get_payment_for_po(po_id)))
