from configs import db


class CodeSequence(db.Model):
    """Bộ đếm mã chứng từ theo tiền tố (YC, XK, RFQ, BG, PO, UNC)."""

    __tablename__ = "code_sequence"

    prefix = db.Column(db.String(10), primary_key=True)
    last_value = db.Column(db.Integer, default=0, nullable=False)
