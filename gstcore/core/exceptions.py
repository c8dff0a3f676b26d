"""
Error taxonomy for the tax and settlement engine.

Every multi-step operation either completes or raises one of these; the
caller's transaction is rolled back so no partial state survives.

    ValidationError         bad input, raised before any write        (400)
    NotFoundError           unknown document / payment / party id     (404)
    ConflictError           number collision, over-allocation          (409)
    StateTransitionError    operation not allowed in current status    (400)
    InvariantViolationError totals or balances failed a post-check     (500)
"""
from typing import Any, Dict, Optional


class EngineError(Exception):
    """Base exception for engine errors."""

    status_code: int = 500
    default_code: str = "ENGINE_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class ValidationError(EngineError):
    status_code = 400
    default_code = "VALIDATION_ERROR"


class NotFoundError(EngineError):
    status_code = 404
    default_code = "NOT_FOUND"


class ConflictError(EngineError):
    status_code = 409
    default_code = "CONFLICT"


class StateTransitionError(EngineError):
    status_code = 400
    default_code = "INVALID_STATE"


class InvariantViolationError(EngineError):
    status_code = 500
    default_code = "INVARIANT_VIOLATION"
