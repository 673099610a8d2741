from flask import Blueprint, jsonify
from flask_login import login_required, current_user
from dao import notification as notification_dao
from utils import serialize

notification_bp = Blueprint("notification", __name__, url_prefix="/api/notifications")


@notification_bp.route("")
@login_required
def notifications_list():
    rows = notification_dao.list_for_user(current_user.id)
    return jsonify(
        {
            "unread": sum(1 for n in rows if not n.read),
            "items": [serialize.notification(n) for n in rows],
        }
    )


@notification_bp.route("/<int:notification_id>/read", methods=["POST"])
@login_required
def notifications_read(notification_id):
    n = notification_dao.mark_read(notification_id, current_user.id)
    return jsonify(serialize.notification(n))


@notification_bp.route("/read-all", methods=["POST"])
@login_required
def notifications_read_all():
    return jsonify({"updated": notification_dao.mark_all_read(current_user.id)})
