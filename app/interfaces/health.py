"""
Health check router.

Liveness and readiness check for the ledger service. Reports the
version and whether the ledger database answers; an unreachable
database turns the answer into a 503 so that load balancers stop
routing to it.
"""

from fastapi import APIRouter, Request, Response, status

from app.core.config import settings
from app.infrastructure.brokerage.database import ping
from app.interfaces.brokerage.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
    summary="Health check",
    description="Returns service status, version and ledger database reachability.",
)
def health_check(request: Request, response: Response) -> HealthResponse:
    if ping(request.app.state.engine):
        return HealthResponse(status="ok", version=settings.version, database="ok")

    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthResponse(
        status="degraded", version=settings.version, database="unreachable"
    )
