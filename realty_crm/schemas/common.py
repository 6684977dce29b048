"""
Common schemas used across multiple endpoints.
"""
from pydantic import BaseModel


class MessageResponse(BaseModel):
    """Simple message response."""
    message: str

    class Config:
        json_schema_extra = {"example": {"message": "Operation successful"}}


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str
