from typing import Any, Dict, Optional

from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        reason: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.reason = reason
        self.details = details or {}

    @property
    def detail(self) -> Dict[str, Any]:
        """Body placed under HTTPException.detail by the routers."""
        body: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.reason:
            body["reason"] = self.reason
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(ServiceError):
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, reason: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST, reason, details)


class NotFound(ServiceError):
    """Row or linkage absent. Also used in place of Forbidden when existence must not leak."""

    code = "NOT_FOUND"

    def __init__(self, message: str, reason: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND, reason, details)


class Forbidden(ServiceError):
    code = "FORBIDDEN"

    def __init__(self, message: str, reason: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, status.HTTP_403_FORBIDDEN, reason, details)


class Conflict(ServiceError):
    """Transition rejected because the current status does not match the precondition."""

    code = "CONFLICT"

    def __init__(self, message: str, reason: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT, reason, details)


class InternalError(ServiceError):
    code = "INTERNAL_ERROR"

    def __init__(self, message: str = "Internal server error", reason: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, reason, details)


# Reason codes carried on errors
REASON_REQUEST_DUPLICATE = "REQUEST_DUPLICATE"
REASON_REQUEST_STATUS_INVALID = "REQUEST_STATUS_INVALID"
REASON_REQUEST_WITHDRAWN_NOT_RESOLVABLE = "REQUEST_WITHDRAWN_NOT_RESOLVABLE"
REASON_SESSION_NOT_UPCOMING = "SESSION_NOT_UPCOMING"
REASON_ROLE_NOT_ALLOWED = "ROLE_NOT_ALLOWED"
