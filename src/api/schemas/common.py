"""Common schema models shared across API endpoints."""

from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, List

from pydantic import BaseModel, Field


class HealthStatusEnum(str, Enum):
    """Health status values for service components."""
    healthy = "healthy"
    unhealthy = "unhealthy"
    degraded = "degraded"


class ErrorResponse(BaseModel):
    """Error body rendered for ServiceError and HTTP errors."""
    success: bool = Field(default=False, example=False)
    error: str = Field(..., example="invalid-argument")
    message: Optional[str] = Field(None, example="daysOld must be a number between 1 and 365")
    details: Optional[Any] = None
    request_id: Optional[str] = Field(None, example="1a2b3c4d")


class HealthStatus(BaseModel):
    """Service health status."""
    status: HealthStatusEnum = Field(default=HealthStatusEnum.healthy, example="healthy")
    version: str = Field(default="1.0.0", example="1.0.0")
    timestamp: datetime
    components: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
