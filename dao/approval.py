# dao/approval.py
"""
Chuỗi duyệt N cấp dùng chung cho MaterialRequest và PurchaseOrder.

Không có con trỏ "cấp hiện tại": cấp được xử lý tiếp theo luôn là bản ghi
PENDING có level nhỏ nhất. Thứ tự được đảm bảo vì ``initialize`` tạo đủ
level 1..N và không có thao tác mở lại một cấp đã xử lý.

Chuỗi không biết ai được duyệt cấp nào; bên gọi truyền vào ``can_act(level)``
(xem ``utils.auth.approval_predicate``).
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple

from configs import db
from db.models.approval import Approval, ApprovalStatus
from utils.errors import NoPendingApprovalError, PermissionDeniedError, ValidationError

logger = logging.getLogger(__name__)

_DECISIONS = {
    "approved": ApprovalStatus.APPROVED,
    "approve": ApprovalStatus.APPROVED,
    "rejected": ApprovalStatus.REJECTED,
    "reject": ApprovalStatus.REJECTED,
}


def to_decision(value) -> ApprovalStatus:
    if isinstance(value, ApprovalStatus):
        decision = value
    else:
        decision = _DECISIONS.get(str(value or "").strip().lower())
    if decision not in (ApprovalStatus.APPROVED, ApprovalStatus.REJECTED):
        raise ValidationError(
            "Quyết định duyệt phải là 'approved' hoặc 'rejected'.", decision=str(value)
        )
    return decision


def initialize(parent, level_count: int) -> List[Approval]:
    """Tạo level 1..level_count, tất cả PENDING, chưa gán người duyệt."""
    if level_count < 1:
        raise ValidationError("Số cấp duyệt phải >= 1.", level_count=level_count)
    approvals = [
        Approval(level=lvl, status=ApprovalStatus.PENDING)
        for lvl in range(1, level_count + 1)
    ]
    parent.approvals.extend(approvals)
    return approvals


def evaluate_outcome(approvals: Iterable[Approval]) -> ApprovalStatus:
    statuses = [a.status for a in approvals]
    if any(s == ApprovalStatus.REJECTED for s in statuses):
        return ApprovalStatus.REJECTED
    if all(s == ApprovalStatus.APPROVED for s in statuses):
        return ApprovalStatus.APPROVED
    return ApprovalStatus.PENDING


def first_pending(approvals: Iterable[Approval]) -> Optional[Approval]:
    pending = [a for a in approvals if a.status == ApprovalStatus.PENDING]
    return min(pending, key=lambda a: a.level) if pending else None


def current_level(approvals: Iterable[Approval]) -> Optional[int]:
    approvals = list(approvals)
    if evaluate_outcome(approvals) != ApprovalStatus.PENDING:
        return None
    nxt = first_pending(approvals)
    return nxt.level if nxt else None


def act_on_next_pending(
    parent,
    acting_user_id: int,
    decision,
    comment: Optional[str] = None,
    signature: Optional[str] = None,
    can_act: Optional[Callable[[int], bool]] = None,
) -> Tuple[Approval, ApprovalStatus]:
    """
    Ghi quyết định cho cấp PENDING thấp nhất và trả về (approval, outcome mới).
    Bên gọi tự đồng bộ status của parent theo outcome và commit.
    """
    decision = to_decision(decision)
    approvals = list(parent.approvals)

    outcome = evaluate_outcome(approvals)
    if outcome != ApprovalStatus.PENDING:
        raise NoPendingApprovalError(
            f"Chuỗi duyệt đã kết thúc ({outcome.value}).", outcome=outcome.value
        )

    target = first_pending(approvals)
    if target is None:
        raise NoPendingApprovalError()

    if can_act is not None and not can_act(target.level):
        raise PermissionDeniedError(
            f"Bạn không có quyền duyệt cấp {target.level}.", level=target.level
        )

    target.approver_id = int(acting_user_id) if acting_user_id else None
    target.status = decision
    target.comment = comment
    target.signature = signature
    target.approved_at = datetime.utcnow()
    db.session.flush()

    new_outcome = evaluate_outcome(approvals)
    logger.info(
        "%s #%s level %s %s by user %s -> chain %s",
        type(parent).__name__,
        parent.id,
        target.level,
        decision.value,
        acting_user_id,
        new_outcome.value,
    )
    return target, new_outcome
