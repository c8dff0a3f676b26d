# Services module
from gstcore.services.document_sequence_service import DocumentSequenceService
from gstcore.services.document_service import DocumentService
from gstcore.services.payment_allocation_service import PaymentAllocationService, AllocationResult
from gstcore.services.payment_service import PaymentService

__all__ = [
    "DocumentSequenceService",
    "DocumentService",
    "PaymentAllocationService",
    "AllocationResult",
    "PaymentService",
]
