from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from dao import stock as stock_dao
from utils import serialize
from utils.auth import ISSUE_STOCK, RECEIVE_STOCK, roles_required

stock_bp = Blueprint("stock", __name__, url_prefix="/api/stock")

_VIEW = tuple(set(ISSUE_STOCK) | set(RECEIVE_STOCK))


@stock_bp.route("/issues")
@login_required
@roles_required(*_VIEW)
def issues_list():
    return jsonify([serialize.stock_issue(i) for i in stock_dao.list_issues()])


@stock_bp.route("/issues/<int:issue_id>")
@login_required
@roles_required(*_VIEW)
def issues_detail(issue_id):
    return jsonify(serialize.stock_issue(stock_dao.get_issue(issue_id)))


@stock_bp.route("/issues", methods=["POST"])
@login_required
@roles_required(*ISSUE_STOCK)
def issues_add():
    data = request.get_json(silent=True) or {}
    issue = stock_dao.issue_stock(
        data.get("request_id"), data.get("items"), current_user.id, note=data.get("note")
    )
    return jsonify(serialize.stock_issue(issue)), 201


@stock_bp.route("/issues/<int:issue_id>/confirm", methods=["POST"])
@login_required
@roles_required(*RECEIVE_STOCK)
def issues_confirm(issue_id):
    data = request.get_json(silent=True) or {}
    issue = stock_dao.confirm_receipt(issue_id, current_user.id, note=data.get("note"))
    return jsonify(serialize.stock_issue(issue))
