"""Health check endpoint for monitoring."""

from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel

from processlink import __version__
from processlink.credentials.service import config_store

router = APIRouter()


class HealthStatus(BaseModel):
    status: str
    timestamp: str
    version: str = __version__
    config_nodes: int


@router.get("/health", response_model=HealthStatus)
async def health() -> HealthStatus:
    return HealthStatus(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        config_nodes=len(config_store),
    )
