"""Common schemas for Church Admin API."""

from typing import Dict, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Body of every domain error response."""
    error: str
    errors: Optional[Dict[str, str]] = None
    required: Optional[str] = None
