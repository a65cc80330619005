"""
Domain exceptions raised by the matching and rental workflow services
"""

from typing import Iterable, List, Optional


class MatchEngineError(Exception):
    """Base class for every error surfaced to callers"""

    error_code = "match_engine_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "error": self.error_code}


class NotFoundError(MatchEngineError):
    """Raised when a tenant, property, match or lease does not exist"""

    error_code = "not_found"

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class InvalidRequestError(MatchEngineError):
    """Raised for malformed input such as self-interaction or a non-positive price"""

    error_code = "invalid_request"


class AuthorizationError(MatchEngineError):
    """Raised when the actor is not allowed to act on the match or property"""

    error_code = "forbidden"


class ConflictError(MatchEngineError):
    """Raised when the requested transition does not fit the current state"""

    error_code = "conflict"

    def __init__(
        self,
        message: str,
        current_status: Optional[str] = None,
        expected_statuses: Optional[Iterable[str]] = None,
    ):
        self.current_status = _status_value(current_status)
        self.expected_statuses: List[str] = [_status_value(s) for s in expected_statuses or []]
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.current_status is not None:
            data["current_status"] = self.current_status
        if self.expected_statuses:
            data["expected_statuses"] = self.expected_statuses
        return data


class ConcurrentModificationError(ConflictError):
    """Raised when a document changed between read and write"""

    error_code = "concurrent_modification"


def _status_value(status):
    if status is None:
        return None
    return status.value if hasattr(status, "value") else str(status)
