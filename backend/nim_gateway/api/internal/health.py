import asyncio

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response

router = APIRouter()

LIVENESS_TEXT = "NVIDIA NIM proxy is running!"


@router.get("/", response_class=PlainTextResponse)
async def root():
    return LIVENESS_TEXT


@router.get("/health")
async def health(request: Request):
    provider = request.app.state.gateway.provider
    try:
        reachable = await asyncio.wait_for(provider.health_check(), timeout=3.0)
    except asyncio.TimeoutError:
        reachable = False
    configured = provider.configured
    return {
        "status": "ok" if configured and reachable else "degraded",
        "upstream_configured": configured,
        "upstream_reachable": reachable,
    }


@router.get("/ready")
async def ready():
    return {"status": "ready"}


# Real preflights are answered by CORSMiddleware; any other OPTIONS gets an empty 200
@router.options("/{full_path:path}", include_in_schema=False)
async def options(full_path: str):
    return Response(status_code=200)
