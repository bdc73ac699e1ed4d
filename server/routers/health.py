from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from database import ping

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request):
    if not ping(request.app.state.engine):
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "services": {"database": "unhealthy"}},
        )
    return {"status": "healthy", "services": {"database": "healthy"}}


@router.get("/health/ready")
def ready(request: Request):
    if not ping(request.app.state.engine):
        return JSONResponse(status_code=503, content={"status": "not ready"})
    return {"status": "ready"}


@router.get("/health/live")
def live():
    return {"status": "alive"}
