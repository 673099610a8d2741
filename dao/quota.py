# dao/quota.py
"""
Định mức BOQ theo (dự án, vật tư).

- ``check_violations`` chỉ mang tính cảnh báo, không chặn việc tạo yêu cầu.
- ``commit_usage`` là thao tác ghi duy nhất lên used_quantity, gọi đúng 1 lần
  khi yêu cầu được duyệt đủ cấp. Không có đường trừ lại.
"""

import logging
from collections import OrderedDict
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from configs import db
from db.models.quota import MaterialQuota
from db.models.material import Material
from db.models.project import Project
from db.models.material_request import MaterialRequest, RequestItem, RequestStatus
from utils.errors import NotFoundError, ValidationError
from utils.numbers import to_decimal, to_id

logger = logging.getLogger(__name__)


def list_quotas() -> List[MaterialQuota]:
    return MaterialQuota.query.order_by(MaterialQuota.created_at.desc()).all()


def list_project_quotas(project_id: int) -> List[MaterialQuota]:
    return (
        MaterialQuota.query.filter_by(project_id=int(project_id))
        .order_by(MaterialQuota.material_id.asc())
        .all()
    )


def get_quota(project_id: int, material_id: int) -> Optional[MaterialQuota]:
    return MaterialQuota.query.filter_by(
        project_id=to_id(project_id, "project_id"),
        material_id=to_id(material_id, "material_id"),
    ).first()


def upsert_quota(project_id: int, material_id: int, max_quantity, created_by_id=None):
    """Tạo mới hoặc cập nhật max_quantity; không bao giờ đụng tới used_quantity."""
    max_qty = to_decimal(max_quantity, "max_quantity")
    if not db.session.get(Project, to_id(project_id, "project_id")):
        raise NotFoundError("Project", project_id)
    if not db.session.get(Material, to_id(material_id, "material_id")):
        raise NotFoundError("Material", material_id)

    quota = get_quota(project_id, material_id)
    if quota:
        quota.max_quantity = max_qty
    else:
        quota = MaterialQuota(
            project_id=int(project_id),
            material_id=int(material_id),
            max_quantity=max_qty,
            used_quantity=Decimal("0"),
            created_by_id=int(created_by_id) if created_by_id else None,
        )
        db.session.add(quota)
    _commit()
    logger.info(
        "Quota project=%s material=%s max=%s", project_id, material_id, max_qty
    )
    return quota


def delete_quota(quota_id: int) -> None:
    quota = db.session.get(MaterialQuota, int(quota_id))
    if not quota:
        raise NotFoundError("MaterialQuota", quota_id)
    db.session.delete(quota)
    _commit()


def _sum_by_material(items: List[Dict]) -> "OrderedDict[int, Decimal]":
    totals: "OrderedDict[int, Decimal]" = OrderedDict()
    for idx, it in enumerate(items, 1):
        try:
            material_id = int(it["material_id"])
        except (KeyError, TypeError, ValueError):
            raise ValidationError(f"Dòng {idx}: thiếu hoặc sai material_id.", line=idx)
        qty = to_decimal(it.get("quantity"), f"Dòng {idx}: quantity", positive=True)
        totals[material_id] = totals.get(material_id, Decimal("0")) + qty
    return totals


def _pending_quantity(project_id: int, material_id: int, exclude_request_id=None) -> Decimal:
    """Tổng số lượng của các yêu cầu khác đang chờ duyệt (chưa ghi vào used)."""
    q = (
        db.session.query(func.coalesce(func.sum(RequestItem.quantity), 0))
        .join(MaterialRequest, MaterialRequest.id == RequestItem.request_id)
        .filter(
            MaterialRequest.project_id == int(project_id),
            MaterialRequest.status == RequestStatus.PENDING,
            RequestItem.material_id == int(material_id),
        )
    )
    if exclude_request_id:
        q = q.filter(MaterialRequest.id != int(exclude_request_id))
    return Decimal(str(q.scalar() or 0))


def check_violations(project_id: int, items: List[Dict], exclude_request_id=None) -> List[Dict]:
    """
    Với mỗi vật tư có định mức:
        total = used (đã duyệt) + đang chờ duyệt (yêu cầu khác) + số lượng mới
    Vượt max -> thêm 1 vi phạm. Không ghi gì xuống DB.
    """
    violations: List[Dict] = []
    for material_id, qty in _sum_by_material(items).items():
        quota = get_quota(project_id, material_id)
        if not quota:
            continue
        used = Decimal(str(quota.used_quantity or 0))
        pending = _pending_quantity(project_id, material_id, exclude_request_id)
        total = used + pending + qty
        max_qty = Decimal(str(quota.max_quantity))
        if total > max_qty:
            violations.append(
                {
                    "material_id": material_id,
                    "material_name": quota.material.name,
                    "unit": quota.material.unit,
                    "requested_quantity": qty,
                    "used_quantity": used,
                    "pending_quantity": pending,
                    "total_requested": total,
                    "max_quantity": max_qty,
                    "exceeded": total - max_qty,
                }
            )
    return violations


def commit_usage(request: MaterialRequest) -> List[MaterialQuota]:
    """Cộng used_quantity theo các dòng của yêu cầu vừa được duyệt đủ cấp. Không commit."""
    touched = []
    totals = _sum_by_material(
        [{"material_id": it.material_id, "quantity": it.quantity} for it in request.items]
    )
    for material_id, qty in totals.items():
        quota = get_quota(request.project_id, material_id)
        if not quota:
            continue
        db.session.execute(
            update(MaterialQuota)
            .where(MaterialQuota.id == quota.id)
            .values(used_quantity=MaterialQuota.used_quantity + qty)
        )
        touched.append(quota)
        logger.info(
            "Quota used +%s project=%s material=%s (request %s)",
            qty,
            request.project_id,
            material_id,
            request.code,
        )
    return touched


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
