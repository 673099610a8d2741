# dao/sequence.py
from configs import db
from db.models.sequence import CodeSequence

REQUEST = "YC"
STOCK_ISSUE = "XK"
RFQ = "RFQ"
QUOTATION = "BG"
PURCHASE_ORDER = "PO"
PAYMENT = "UNC"


def next_code(prefix: str, width: int = 5) -> str:
    """
    Cấp mã tiếp theo cho tiền tố (vd YC00001). Khóa dòng bộ đếm nên 2 giao dịch
    song song không nhận trùng mã; có thể nhảy số nếu giao dịch bị rollback.
    """
    seq = db.session.get(CodeSequence, prefix, with_for_update=True)
    if seq is None:
        seq = CodeSequence(prefix=prefix, last_value=0)
        db.session.add(seq)
    seq.last_value = (seq.last_value or 0) + 1
    db.session.flush()
    return f"{prefix}{seq.last_value:0{width}d}"
