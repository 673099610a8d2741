"""
Lỗi nghiệp vụ do các hàm trong ``dao`` ném ra.

Mỗi lỗi có ``code`` cho máy đọc, ``status_code`` HTTP mà tầng API trả về và
``details`` chứa dữ liệu có cấu trúc (tên vật tư, chứng từ còn thiếu, số lượng)
để client hiển thị thông báo cụ thể.

    ProcurementError
    +-- NotFoundError
    +-- InvalidStateError
    |   +-- NoPendingApprovalError
    |   +-- AlreadyExistsError
    |   +-- AlreadyProcessedError
    +-- InsufficientStockError
    +-- AllFulfillableFromStockError
    +-- ValidationError
    +-- PermissionDeniedError
"""

from typing import Any, Dict, List, Optional


class ProcurementError(Exception):
    code = "PROCUREMENT_ERROR"
    status_code = 400

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message, "details": self.details}


class NotFoundError(ProcurementError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} #{entity_id} không tồn tại.", entity=entity, id=entity_id)
        self.entity = entity
        self.entity_id = entity_id


class InvalidStateError(ProcurementError):
    code = "INVALID_STATE"
    status_code = 409


class NoPendingApprovalError(InvalidStateError):
    code = "NO_PENDING_APPROVAL"

    def __init__(self, message: str = "Không còn cấp duyệt nào đang chờ.", outcome: Optional[str] = None):
        super().__init__(message, outcome=outcome)
        self.outcome = outcome


class AlreadyExistsError(InvalidStateError):
    code = "ALREADY_EXISTS"


class AlreadyProcessedError(InvalidStateError):
    code = "ALREADY_PROCESSED"


class InsufficientStockError(ProcurementError):
    code = "INSUFFICIENT_STOCK"
    status_code = 409

    def __init__(self, material_id: int, material_name: str, available, requested):
        super().__init__(
            f"Không đủ tồn kho cho {material_name}. Tồn: {available}, yêu cầu: {requested}",
            material_id=material_id,
            material_name=material_name,
            available=available,
            requested=requested,
        )
        self.material_id = material_id
        self.material_name = material_name
        self.available = available
        self.requested = requested


class AllFulfillableFromStockError(ProcurementError):
    code = "ALL_FULFILLABLE_FROM_STOCK"
    status_code = 409

    def __init__(self, request_id: int):
        super().__init__(
            "Tất cả vật tư đều đủ trong kho. Vui lòng xuất kho nội bộ thay vì tạo RFQ.",
            request_id=request_id,
            can_fulfill_from_stock=True,
        )


class ValidationError(ProcurementError):
    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, message: str, missing_documents: Optional[List[str]] = None, **details: Any):
        if missing_documents is not None:
            details["missing_documents"] = missing_documents
        super().__init__(message, **details)
        self.missing_documents = missing_documents or []


class PermissionDeniedError(ProcurementError):
    code = "PERMISSION_DENIED"
    status_code = 403
