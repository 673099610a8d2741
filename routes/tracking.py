from datetime import datetime

from flask import Blueprint, jsonify, request
from flask_login import login_required
from dao import tracking as tracking_dao
from utils import serialize
from utils.auth import MANAGE_PO, TRACK_DELIVERY, roles_required

tracking_bp = Blueprint("tracking", __name__, url_prefix="/api/tracking")


@tracking_bp.route("", methods=["POST"])
@login_required
@roles_required(*TRACK_DELIVERY)
def tracking_add():
    data = request.get_json(silent=True) or {}
    ev = tracking_dao.record_event(
        data.get("po_id"),
        data.get("status"),
        location=data.get("location"),
        note=data.get("note"),
        is_delayed=data.get("is_delayed"),
        delay_reason=data.get("delay_reason"),
    )
    return jsonify(serialize.tracking(ev)), 201


@tracking_bp.route("/check-delays", methods=["POST"])
@login_required
@roles_required(*MANAGE_PO)
def tracking_check_delays():
    created = tracking_dao.scan_for_overdue(datetime.utcnow())
    return jsonify({"flagged": len(created), "events": [serialize.tracking(t) for t in created]})
