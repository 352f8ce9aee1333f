"""Health check route."""

from fastapi import APIRouter
from pydantic import BaseModel


class StatusResponse(BaseModel):
    """Response model for status."""

    status: str


def create_health_router() -> APIRouter:
    """Create health router."""
    router = APIRouter(tags=["health"])

    @router.get("/health", response_model=StatusResponse)
    async def health() -> dict:
        """Report that the server is running."""
        return {"status": "ok"}

    return router
