"""
Fixtures dùng chung: app với TestingConfig (SQLite in-memory), mailer giả
ghi lại email đã gửi, và dữ liệu gốc (user theo role, dự án, vật tư, NCC).
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from werkzeug.security import generate_password_hash

from app import create_app
from config import TestingConfig
from configs import db
from db.models.material import Material
from db.models.project import Project
from db.models.supplier import Supplier
from db.models.user import User, UserRole
from dao import (
    material_request as request_dao,
    purchase as po_dao,
    quotation as quotation_dao,
    rfq as rfq_dao,
)

PASSWORD = "123456"


class RecordingMailer:
    """Thay cho Mailer thật; ``fail_for`` chứa email sẽ ném lỗi khi gửi."""

    def __init__(self):
        self.sent = []
        self.fail_for = set()

    def _record(self, kind, to, ref):
        if to in self.fail_for:
            raise RuntimeError(f"SMTP refused {to}")
        self.sent.append((kind, to, ref))

    def send_rfq_invitation(self, supplier, rfq):
        self._record("rfq", supplier.email, rfq.code)

    def send_po_confirmation(self, supplier, po):
        self._record("po", supplier.email, po.code)

    def send_delay_alert(self, user, po, reason):
        self._record("delay", user.email, po.code)

    def of_kind(self, kind):
        return [s for s in self.sent if s[0] == kind]


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def app(mailer):
    app = create_app(TestingConfig, mailer=mailer)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _user(username, role):
    u = User(
        username=username,
        email=f"{username}@demo.com",
        password_hash=generate_password_hash(PASSWORD, method="pbkdf2:sha256:1000"),
        full_name=username,
        role=role,
        is_active=True,
    )
    db.session.add(u)
    return u


@pytest.fixture
def users(app):
    out = {
        "admin": _user("admin", UserRole.ADMIN),
        "manager": _user("truongphong", UserRole.PURCHASING_MANAGER),
        "staff": _user("nhanvien", UserRole.PURCHASING_STAFF),
        "accountant": _user("ketoan", UserRole.ACCOUNTANT),
        "director": _user("giamdoc", UserRole.DIRECTOR),
        "supervisor": _user("giamsat", UserRole.SUPERVISOR),
        "quota_office": _user("phongos", UserRole.QUOTA_OFFICE),
        "ncc1": _user("ncc1", UserRole.SUPPLIER),
        "ncc2": _user("ncc2", UserRole.SUPPLIER),
        "ncc3": _user("ncc3", UserRole.SUPPLIER),
    }
    db.session.commit()
    return out


@pytest.fixture
def project(app):
    p = Project(code="DA001", name="Dự án Chung cư Sunrise", address="Quận 7")
    db.session.add(p)
    db.session.commit()
    return p


@pytest.fixture
def materials(app):
    steel = Material(
        code="THEP001", name="Thép D10", unit="kg", stock=Decimal("1500"), price=Decimal("18000")
    )
    cement = Material(
        code="VL001", name="Xi măng PCB40", unit="bao", stock=Decimal("500"), price=Decimal("95000")
    )
    db.session.add_all([steel, cement])
    db.session.commit()
    return {"steel": steel, "cement": cement}


@pytest.fixture
def suppliers(app, users):
    rows = []
    for idx, name in enumerate(("Vật liệu XD ABC", "Thép XYZ", "Xi măng DEF"), 1):
        s = Supplier(
            code=f"NCC00{idx}",
            name=name,
            email=f"ncc{idx}@demo.com",
            user_id=users[f"ncc{idx}"].id,
        )
        db.session.add(s)
        rows.append(s)
    db.session.commit()
    return rows


@pytest.fixture
def make_request(users, project):
    def _make(items, created_by="staff", **kw):
        return request_dao.create_request(
            project_id=project.id, created_by_id=users[created_by].id, items=items, **kw
        )

    return _make


@pytest.fixture
def approve_all(users):
    """Duyệt đủ 3 cấp theo đúng role từng cấp."""

    def _approve(act, entity_id):
        for key in ("manager", "accountant", "director"):
            act(entity_id, users[key].id, "approved")

    return _approve


@pytest.fixture
def approved_request(make_request, approve_all, materials):
    def _make(quantity, material="steel"):
        req = make_request([{"material_id": materials[material].id, "quantity": quantity}])
        approve_all(request_dao.act_on_approval, req.id)
        return req

    return _make


@pytest.fixture
def selected_quotation(approved_request, suppliers, users, materials):
    """Yêu cầu 2000 kg thép (tồn 1500) -> RFQ 500 kg -> 2 báo giá, chọn NCC001."""

    def _make(unit_prices=(Decimal("17000"), Decimal("17500"))):
        req = approved_request(2000)
        rfq = rfq_dao.create_rfq(
            req.id,
            [s.id for s in suppliers[:2]],
            datetime.utcnow() + timedelta(days=7),
            created_by_id=users["manager"].id,
        )
        quotes = []
        for s, price in zip(suppliers, unit_prices):
            quotes.append(
                quotation_dao.submit_quotation(
                    rfq.id,
                    s.id,
                    [{"material_id": materials["steel"].id, "quantity": 500, "unit_price": price}],
                    delivery_time=5,
                    payment_terms="30 ngày",
                    valid_until=datetime.utcnow() + timedelta(days=30),
                )
            )
        return quotation_dao.select_quotation(quotes[0].id)

    return _make


@pytest.fixture
def approved_po(selected_quotation, approve_all, users):
    def _make(delivery_date=None):
        q = selected_quotation()
        po = po_dao.create_from_quotation(
            q.id,
            "Công trường DA001",
            delivery_date or datetime.utcnow() + timedelta(days=5),
            created_by_id=users["manager"].id,
        )
        approve_all(po_dao.act_on_approval, po.id)
        return po

    return _make
