# utils/serialize.py
"""Chuyển model/ dict nghiệp vụ sang JSON (Decimal -> float, datetime -> ISO, Enum -> value)."""

import enum
from datetime import date, datetime
from decimal import Decimal


def plain(value):
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [plain(v) for v in value]
    return value


def columns(obj, *names):
    return {n: plain(getattr(obj, n)) for n in names}


def user(u):
    if u is None:
        return None
    return columns(u, "id", "username", "full_name", "email", "role", "is_active")


def project(p):
    return columns(p, "id", "code", "name", "address", "is_active", "created_at")


def material(m):
    return columns(
        m, "id", "code", "name", "category", "unit", "stock", "min_stock", "price", "is_active"
    )


def supplier(s):
    return columns(
        s, "id", "code", "name", "email", "phone", "address", "tax_code", "rating", "is_active", "user_id"
    )


def quota(q):
    out = columns(
        q, "id", "project_id", "material_id", "max_quantity", "used_quantity", "created_at", "updated_at"
    )
    out["material"] = material(q.material) if q.material else None
    out["remaining"] = plain((q.max_quantity or 0) - (q.used_quantity or 0))
    return out


def approval(a):
    out = columns(a, "id", "level", "status", "approver_id", "comment", "signature", "approved_at")
    out["approver"] = user(a.approver) if a.approver_id else None
    return out


def request_item(it):
    out = columns(it, "id", "material_id", "quantity", "note")
    out["material"] = material(it.material)
    return out


def material_request(r):
    from dao import approval as approval_dao

    out = columns(
        r, "id", "code", "project_id", "created_by_id", "description", "priority",
        "need_by_date", "status", "created_at",
    )
    out["project"] = project(r.project)
    out["items"] = [request_item(it) for it in r.items]
    out["approvals"] = [approval(a) for a in r.approvals]
    out["current_level"] = approval_dao.current_level(r.approvals)
    out["rfq_id"] = r.rfq.id if r.rfq else None
    return out


def stock_issue(i):
    out = columns(
        i, "id", "code", "request_id", "issued_by_id", "received_by_id", "status",
        "note", "issued_at", "received_at",
    )
    out["items"] = [
        dict(columns(it, "id", "material_id", "quantity", "note"), material=material(it.material))
        for it in i.items
    ]
    return out


def rfq(r, with_quotations=False):
    out = columns(
        r, "id", "code", "request_id", "title", "description", "deadline", "status",
        "created_by_id", "created_at",
    )
    out["items"] = [
        dict(columns(it, "id", "material_id", "quantity", "note"), material=material(it.material))
        for it in r.items
    ]
    out["suppliers"] = [
        dict(supplier(inv.supplier), email_sent=inv.email_sent) for inv in r.invitations
    ]
    if with_quotations:
        out["quotations"] = [quotation(q) for q in r.quotations]
    return out


def quotation(q):
    out = columns(
        q, "id", "code", "rfq_id", "supplier_id", "total_amount", "delivery_time",
        "payment_terms", "note", "valid_until", "status", "submitted_at",
    )
    out["supplier"] = supplier(q.supplier)
    out["items"] = [
        dict(
            columns(it, "id", "material_id", "quantity", "unit_price", "amount", "note"),
            material=material(it.material),
        )
        for it in q.items
    ]
    return out


def tracking(t):
    return columns(
        t, "id", "po_id", "status", "location", "note", "is_delayed", "delay_reason", "created_at"
    )


def delivery(d):
    if d is None:
        return None
    return columns(
        d, "id", "po_id", "delivery_date", "received_by", "actual_quantity",
        "quality_status", "photos", "note", "created_at",
    )


def payment(p):
    if p is None:
        return None
    return columns(
        p, "id", "po_id", "unc_number", "amount", "method", "type", "status",
        "invoice_number", "vat_invoice_file", "delivery_note", "acceptance_note", "note",
        "created_by_id", "approved_by_id", "approved_at", "paid_at", "created_at",
    )


def purchase_order(po, detail=False):
    from dao import approval as approval_dao

    out = columns(
        po, "id", "code", "quotation_id", "project_id", "supplier_id", "status",
        "total_amount", "vat_amount", "grand_total", "delivery_address", "delivery_date",
        "actual_delivery", "payment_terms", "note", "created_by_id", "created_at",
    )
    out["supplier"] = supplier(po.supplier)
    out["project"] = project(po.project)
    out["current_level"] = approval_dao.current_level(po.approvals)
    if detail:
        out["items"] = [
            dict(
                columns(it, "id", "material_id", "quantity", "unit_price", "amount"),
                material=material(it.material),
            )
            for it in po.items
        ]
        out["approvals"] = [approval(a) for a in po.approvals]
        out["trackings"] = [tracking(t) for t in po.trackings]
        out["delivery"] = delivery(po.delivery)
        out["payment"] = payment(po.payment)
    return out


def evaluation(e):
    return columns(
        e, "id", "supplier_id", "po_id", "evaluator_id", "price_score", "quality_score",
        "delivery_score", "support_score", "avg_score", "comment", "created_at",
    )


def notification(n):
    return columns(n, "id", "user_id", "title", "message", "type", "link", "read", "created_at")
