"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.domain.ports import ProofStatus, VerificationType


class InitiateRequest(BaseModel):
    """Request model for starting a domain verification."""

    domain: str = Field(
        ...,
        min_length=1,
        max_length=253,
        description="Hostname to verify, e.g. example.com (no scheme or path)",
    )
    verification_type: VerificationType = Field(..., description="Proof method")
    app_id: str | None = Field(None, description="Optional app the claim is for")


class InitiateResponse(BaseModel):
    """Response model for a newly initiated verification."""

    verification_id: str
    token: str
    expires_at: datetime
    instructions: str


class VerifyResponse(BaseModel):
    """Response model for a verification attempt."""

    verified: bool
    message: str
    status: ProofStatus
    retry_count: int


class ProofResponse(BaseModel):
    """Read-only view of a verification proof."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    developer_id: str
    app_id: str | None
    domain: str
    verification_type: VerificationType
    verification_token: str
    status: ProofStatus
    retry_count: int
    max_retries: int
    failure_reason: str | None
    verification_data: dict[str, Any] | None
    created_at: datetime
    expires_at: datetime
    verified_at: datetime | None
    updated_at: datetime


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
