# routes/material_request.py
from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from dao import (
    material_request as request_dao,
    quota as quota_dao,
    rfq as rfq_dao,
    stock as stock_dao,
)
from utils import serialize
from utils.auth import (
    APPROVERS,
    CREATE_REQUEST,
    ISSUE_STOCK,
    MANAGE_RFQ,
    VIEW_REQUEST,
    approval_predicate,
    roles_required,
)

request_bp = Blueprint("material_request", __name__, url_prefix="/api/requests")


@request_bp.route("")
@login_required
@roles_required(*VIEW_REQUEST)
def requests_list():
    rows = request_dao.list_requests(
        project_id=request.args.get("project_id"), status=request.args.get("status")
    )
    return jsonify([serialize.material_request(r) for r in rows])


@request_bp.route("/<int:request_id>")
@login_required
@roles_required(*VIEW_REQUEST)
def requests_detail(request_id):
    return jsonify(serialize.material_request(request_dao.get_request(request_id)))


@request_bp.route("/check-quota", methods=["POST"])
@login_required
@roles_required(*CREATE_REQUEST)
def requests_check_quota():
    """Cảnh báo vượt định mức trước khi gửi yêu cầu (không chặn)."""
    data = request.get_json(silent=True) or {}
    violations = quota_dao.check_violations(
        data.get("project_id"), data.get("items") or [], data.get("exclude_request_id")
    )
    return jsonify({"has_violations": bool(violations), "violations": serialize.plain(violations)})


@request_bp.route("", methods=["POST"])
@login_required
@roles_required(*CREATE_REQUEST)
def requests_add():
    data = request.get_json(silent=True) or {}
    req = request_dao.create_request(
        project_id=data.get("project_id"),
        created_by_id=current_user.id,
        items=data.get("items") or [],
        description=data.get("description"),
        priority=data.get("priority"),
        need_by_date=data.get("need_by_date"),
    )
    out = serialize.material_request(req)
    out["quota_warnings"] = serialize.plain(
        quota_dao.check_violations(
            req.project_id,
            [{"material_id": it.material_id, "quantity": it.quantity} for it in req.items],
            exclude_request_id=req.id,
        )
    )
    return jsonify(out), 201


@request_bp.route("/<int:request_id>/approve", methods=["POST"])
@login_required
@roles_required(*APPROVERS)
def requests_approve(request_id):
    data = request.get_json(silent=True) or {}
    approval = request_dao.act_on_approval(
        request_id,
        current_user.id,
        data.get("status") or data.get("decision"),
        comment=data.get("comment"),
        signature=data.get("signature"),
        can_act=approval_predicate(current_user, "request"),
    )
    return jsonify(
        {
            "approval": serialize.approval(approval),
            "request": serialize.material_request(request_dao.get_request(request_id)),
        }
    )


@request_bp.route("/<int:request_id>/analyze")
@login_required
@roles_required(*VIEW_REQUEST)
def requests_analyze(request_id):
    return jsonify(serialize.plain(stock_dao.analyze(request_id)))


@request_bp.route("/<int:request_id>/check-stock")
@login_required
@roles_required(*MANAGE_RFQ)
def requests_check_stock(request_id):
    return jsonify(serialize.plain(rfq_dao.stock_preview(request_id)))


@request_bp.route("/<int:request_id>/issue", methods=["POST"])
@login_required
@roles_required(*ISSUE_STOCK)
def requests_issue(request_id):
    data = request.get_json(silent=True) or {}
    issue = stock_dao.issue_stock(
        request_id, data.get("items"), current_user.id, note=data.get("note")
    )
    return jsonify(serialize.stock_issue(issue)), 201
