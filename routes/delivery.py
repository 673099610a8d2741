from flask import Blueprint, jsonify, request
from flask_login import login_required
from dao import delivery as delivery_dao
from utils import serialize
from utils.auth import CHECK_DELIVERY, roles_required

delivery_bp = Blueprint("delivery", __name__, url_prefix="/api/deliveries")


@delivery_bp.route("", methods=["POST"])
@login_required
@roles_required(*CHECK_DELIVERY)
def deliveries_add():
    data = request.get_json(silent=True) or {}
    d = delivery_dao.create_delivery(
        data.get("po_id"),
        data.get("received_by"),
        actual_quantity=data.get("actual_quantity"),
        quality_status=data.get("quality_status"),
        delivery_date=data.get("delivery_date"),
        photos=data.get("photos"),
        note=data.get("note"),
    )
    return jsonify(serialize.delivery(d)), 201
