"""Shared error response definitions for OpenAPI documentation."""

from .common import ErrorResponse

BASE_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request parameters"},
    401: {"model": ErrorResponse, "description": "Caller identity or API key missing"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}

LIMITS_ERROR_RESPONSES = {
    **BASE_ERROR_RESPONSES,
    403: {"model": ErrorResponse, "description": "Querying another user's limits requires admin"},
}

ADMIN_ERROR_RESPONSES = {
    **BASE_ERROR_RESPONSES,
    403: {"model": ErrorResponse, "description": "Caller is not an administrator"},
}

__all__ = [
    "BASE_ERROR_RESPONSES",
    "LIMITS_ERROR_RESPONSES",
    "ADMIN_ERROR_RESPONSES",
]
