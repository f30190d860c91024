"""
Pydantic schemas for request/response validation.

This module contains:
- Request models for incoming data validation
- Response models for API responses
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from ventspace.models import DEFAULT_EMOJI, Message
from ventspace.utils import format_timestamp


# =============================================================================
# Pydantic Request Models
# =============================================================================

class MessageCreate(BaseModel):
    """
    Body of POST /api/messages.

    Only the shape is checked here; bounds and content are the ingestion
    service's job so that every rejection goes through the same path.
    """
    text: str = Field(..., description="Message text (3-1000 characters after trimming)")
    emoji: Any = Field(
        None,
        description=f"Reaction emoji; unknown or missing values become {DEFAULT_EMOJI}"
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"text": "hello world", "emoji": "😊"}
            ]
        }
    }


# =============================================================================
# Pydantic Response Models
# =============================================================================

class MessageResponse(BaseModel):
    """
    Sanitized projection of a stored message.
    The client identifier hash is never part of it.
    """
    id: str = Field(..., description="Store-assigned message identifier")
    text: str = Field(..., description="Message text")
    emoji: str = Field(..., description="Reaction emoji")
    timestamp: str = Field(..., description="Server time of creation (ISO-8601 UTC)")

    @classmethod
    def from_message(cls, message: Message) -> "MessageResponse":
        return cls(
            id=message.id,
            text=message.text,
            emoji=message.emoji,
            timestamp=format_timestamp(message.timestamp),
        )


class ErrorResponse(BaseModel):
    """Response model for error responses."""
    detail: str = Field(..., description="Error description")
    category: str = Field(
        ...,
        description="rate_limited, content_rejected, invalid_data or server_error"
    )
    reason_category: Optional[str] = Field(
        None,
        description="Moderation rule group for content_rejected errors"
    )


class HealthResponse(BaseModel):
    """Response model for the health probe."""
    status: str = Field(..., description="Health status")
    timestamp: str = Field(..., description="Current server time (ISO-8601 UTC)")
    storage: str = Field(..., description="Active message store backend: sql or memory")
