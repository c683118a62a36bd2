"""
Custom exceptions for CarLeads
Provides structured error handling across all domains
"""
from typing import Any, Dict, Optional


class CarLeadsError(Exception):
    """Base exception for all CarLeads errors"""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses"""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(CarLeadsError):
    """Raised when input validation fails"""

    def __init__(self, message: str, field: Optional[str] = None, **details):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details={"field": field, **details} if field else details,
            status_code=400,
        )


class AuthenticationError(CarLeadsError):
    """Raised when a caller cannot be authenticated"""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message=message, error_code="AUTHENTICATION_ERROR", status_code=401)


class AuthorizationError(CarLeadsError):
    """Raised when an authenticated caller lacks the required role"""

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message=message, error_code="AUTHORIZATION_ERROR", status_code=403)


class NotFoundError(CarLeadsError):
    """Raised when a resource is not found"""

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            message=f"{resource} not found",
            error_code="NOT_FOUND",
            details={"resource": resource, "identifier": str(identifier)},
            status_code=404,
        )


class DuplicateError(CarLeadsError):
    """Raised when attempting to create a duplicate resource"""

    def __init__(self, resource: str, identifier: Any, message: Optional[str] = None, **details):
        super().__init__(
            message=message or f"{resource} already exists: {identifier}",
            error_code="DUPLICATE",
            details={"resource": resource, "identifier": str(identifier), **details},
            status_code=409,
        )


class DuplicateLeadError(DuplicateError):
    """Raised when a submitted lead matches an existing one"""

    def __init__(self, conflicting_lead_id: str):
        super().__init__(
            resource="Lead",
            identifier=conflicting_lead_id,
            message="Duplicate lead detected",
            conflicting_lead_id=conflicting_lead_id,
        )
        self.conflicting_lead_id = conflicting_lead_id

