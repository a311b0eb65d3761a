"""Health check endpoint for the ricesync API."""

from datetime import UTC, datetime

from fastapi import APIRouter, Request
from pydantic import BaseModel

from ricesync import __version__

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    time: str
    version: str
    repository: str


@router.get("/health", response_model=HealthResponse)
def get_health(request: Request) -> HealthResponse:
    """Report liveness and the repository coordinate resolved at start-up."""
    components = request.app.state.store_components
    return HealthResponse(
        status="ok",
        time=datetime.now(UTC).isoformat(),
        version=__version__,
        repository=str(components.context.coordinates),
    )
