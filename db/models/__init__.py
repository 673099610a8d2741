from .user import User
from .project import Project
from .supplier import Supplier
from .material import Material
from .quota import MaterialQuota

from .material_request import MaterialRequest, RequestItem
from .approval import Approval
from .stock_issue import StockIssue, StockIssueItem
from .rfq import RFQ, RFQItem, RFQInvitation
from .quotation import Quotation, QuotationItem

from .purchase import PurchaseOrder, PurchaseOrderItem
from .delivery import Delivery, DeliveryTracking
from .payment import Payment
from .evaluation import SupplierEvaluation
from .notification import Notification
from .sequence import CodeSequence

__all__ = [n for n in dir() if n[:1].isupper()]
