"""System status schemas."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "ok"
    version: str
    service: str = "family-cloud-api"
    environment: str
    bucket: str
    sign_in: list[str] = []
