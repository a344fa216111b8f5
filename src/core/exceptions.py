"""
Error taxonomy for quota enforcement and maintenance operations.

Backend failures (google.api_core exceptions) are deliberately absent here:
services let them propagate unchanged so the invoking scheduler or caller
applies its own retry policy.
"""

from typing import Optional, Dict, Any


class ServiceError(Exception):
    """Base exception for errors surfaced to callers."""

    code = "internal"
    http_status = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_response_dict(self) -> Dict[str, Any]:
        """Convert to HTTP response body."""
        response = {
            "success": False,
            "error": self.code,
            "message": self.message,
        }
        if self.details:
            response["details"] = self.details
        return response


class ValidationError(ServiceError):
    """Malformed input. Never retried automatically."""

    code = "invalid-argument"
    http_status = 400


class UnauthenticatedError(ServiceError):
    """Caller identity is missing."""

    code = "unauthenticated"
    http_status = 401

    def __init__(self, message: str = "unauthenticated: authentication is required"):
        super().__init__(message)


class PermissionDeniedError(ServiceError):
    """Caller is authenticated but not allowed to perform the operation."""

    code = "permission-denied"
    http_status = 403


class QuotaExceededError(PermissionDeniedError):
    """
    Raised after a just-created resource was deleted for exceeding its quota.

    The compensating delete has already happened when this is raised.
    """

    def __init__(
        self,
        resource_type: str,
        current_count: int,
        limit: int,
        tenant_id: str,
        message: str,
        by_collaborator: bool = False,
    ):
        self.resource_type = resource_type
        self.current_count = current_count
        self.limit = limit
        self.tenant_id = tenant_id
        self.by_collaborator = by_collaborator

        super().__init__(
            message=message,
            details={
                "resource_type": resource_type,
                "current_count": current_count,
                "limit": limit,
                "tenant_id": tenant_id,
                "by_collaborator": by_collaborator,
            },
        )


__all__ = [
    "ServiceError",
    "ValidationError",
    "UnauthenticatedError",
    "PermissionDeniedError",
    "QuotaExceededError",
]
