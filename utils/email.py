# utils/email.py
"""
Gửi email cho NCC / người yêu cầu qua Flask-Mail.

Các hàm nghiệp vụ lấy mailer bằng ``get_mailer()`` (đăng ký trong
``app.extensions["procurement_mailer"]``) để test có thể thay bằng bản giả.
Mọi lỗi gửi mail được bên gọi bắt và log theo từng người nhận.
"""

import logging

from flask import current_app, render_template_string
from flask_mail import Message

from configs import mail

logger = logging.getLogger(__name__)

EXTENSION_KEY = "procurement_mailer"

RFQ_TEMPLATE = """
<h2>YÊU CẦU BÁO GIÁ {{ rfq.code }}</h2>
<p>Kính gửi <strong>{{ supplier.name }}</strong>,</p>
<p>{{ rfq.title }}. Hạn gửi báo giá: <strong>{{ rfq.deadline.strftime('%d/%m/%Y') }}</strong></p>
<table>
  <tr><th>Vật tư</th><th>Đơn vị</th><th>Số lượng</th></tr>
  {% for it in rfq.items %}
  <tr><td>{{ it.material.name }}</td><td>{{ it.material.unit }}</td><td>{{ it.quantity }}</td></tr>
  {% endfor %}
</table>
{% if rfq.description %}<pre>{{ rfq.description }}</pre>{% endif %}
<p><a href="{{ link }}">Gửi báo giá</a></p>
"""

PO_TEMPLATE = """
<h2>ĐƠN ĐẶT HÀNG {{ po.code }}</h2>
<p>Kính gửi <strong>{{ supplier.name }}</strong>,</p>
<p>Địa chỉ giao hàng: {{ po.delivery_address or '' }}</p>
{% if po.delivery_date %}<p>Ngày giao: {{ po.delivery_date.strftime('%d/%m/%Y') }}</p>{% endif %}
<table>
  <tr><th>Vật tư</th><th>Số lượng</th><th>Đơn giá</th><th>Thành tiền</th></tr>
  {% for it in po.items %}
  <tr><td>{{ it.material.name }}</td><td>{{ it.quantity }}</td><td>{{ it.unit_price }}</td><td>{{ it.amount }}</td></tr>
  {% endfor %}
</table>
<p>Tổng: {{ po.total_amount }} - VAT: {{ po.vat_amount }} - Tổng cộng: <strong>{{ po.grand_total }}</strong></p>
"""

DELAY_TEMPLATE = """
<h2>Thông báo chậm trễ giao hàng</h2>
<p>Đơn hàng <strong>{{ po.code }}</strong> cho dự án <strong>{{ po.project.name }}</strong> bị chậm trễ.</p>
<p><strong>Lý do:</strong> {{ reason or 'Không rõ' }}</p>
"""


class Mailer:
    """Bọc Flask-Mail; mỗi hàm gửi đúng 1 email cho 1 người nhận."""

    def __init__(self, mail_ext=None):
        self.mail = mail_ext or mail

    def _send(self, to: str, subject: str, html: str) -> None:
        if not to:
            raise ValueError("Người nhận chưa có email.")
        msg = Message(subject=subject, recipients=[to], html=html)
        self.mail.send(msg)
        logger.info("Email sent to %s: %s", to, subject)

    def send_rfq_invitation(self, supplier, rfq) -> None:
        base = current_app.config.get("FRONTEND_URL", "")
        html = render_template_string(
            RFQ_TEMPLATE,
            rfq=rfq,
            supplier=supplier,
            link=f"{base}/quotations/new/{rfq.id}",
        )
        self._send(supplier.email, f"Yêu cầu báo giá - {rfq.code}", html)

    def send_po_confirmation(self, supplier, po) -> None:
        html = render_template_string(PO_TEMPLATE, po=po, supplier=supplier)
        self._send(supplier.email, f"Đơn đặt hàng - {po.code}", html)

    def send_delay_alert(self, user, po, reason) -> None:
        html = render_template_string(DELAY_TEMPLATE, po=po, reason=reason)
        self._send(user.email, f"Đơn hàng {po.code} bị chậm trễ", html)


def init_mailer(app, mailer=None) -> None:
    app.extensions[EXTENSION_KEY] = mailer or Mailer()


def get_mailer():
    mailer = current_app.extensions.get(EXTENSION_KEY)
    if mailer is None:
        mailer = Mailer()
        current_app.extensions[EXTENSION_KEY] = mailer
    return mailer
