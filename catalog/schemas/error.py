from datetime import datetime, timezone

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body returned for every failed request."""
    status: int = Field(..., description="HTTP status code")
    message: str = Field(..., description="Human readable error message")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
