"""
Common API Response Schemas

Standardized error response returned by every exception handler.
"""
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error response for all API errors.

    Error Codes:
        - VALIDATION_ERROR: Request validation failed (400/422)
        - INVALID_TRANSITION: Lifecycle operation not allowed in current status (400)
        - DUPLICATE_ERROR: Duplicate resource (400)
        - NOT_FOUND: Resource not found (404)
        - CONCURRENCY_ERROR: Order changed by another operation (409)
        - BUSINESS_RULE_ERROR: Business rule violation (422)
        - INSUFFICIENT_INVENTORY: Not enough component stock (422)
        - DATABASE_ERROR: Database operation failed (500)
        - INTERNAL_ERROR: Unexpected internal error (500)
    """
    error: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Additional error context for debugging"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the error occurred (UTC)"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "error": "INVALID_TRANSITION",
                "message": "Cannot complete ProductionOrder 7 in status PLANNED (allowed from: IN_PROGRESS)",
                "details": {
                    "entity": "ProductionOrder",
                    "entity_id": "7",
                    "action": "complete",
                    "current_state": "PLANNED",
                    "allowed_states": ["IN_PROGRESS"]
                },
                "timestamp": "2026-03-02T10:30:00Z"
            }
        }


# Shared `responses=` map for routers
ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Validation or lifecycle error"},
    404: {"model": ErrorResponse, "description": "Resource not found"},
    409: {"model": ErrorResponse, "description": "Concurrent modification"},
    422: {"model": ErrorResponse, "description": "Business rule violation"},
}
