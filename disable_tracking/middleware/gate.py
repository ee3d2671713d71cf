"""
Tracking gate middleware - drops tracking requests for disabled sites
before any event is recorded.
"""
from fastapi import Request, Response, status
from fastapi.concurrency import run_in_threadpool
from typing import Callable

from ..services.tracking_gate import GateDecision, TrackingRequestContext


def request_context(request: Request, site_id_param: str) -> TrackingRequestContext:
    return TrackingRequestContext(
        path=request.url.path,
        site_token=request.query_params.get(site_id_param),
        client_ip=request.client.host if request.client else None,
    )


async def tracking_gate_middleware(request: Request, call_next: Callable):
    """
    Must be the outermost middleware. A terminated request gets an empty
    204 and never reaches the endpoint.
    """
    settings = request.app.state.settings
    if request.url.path not in settings.TRACKING_PATHS:
        return await call_next(request)

    ctx = request_context(request, settings.SITE_ID_PARAM)
    # The cache lookup may hit the database on a miss
    decision = await run_in_threadpool(request.app.state.tracking_gate.check, ctx)

    if decision is GateDecision.TERMINATE:
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return await call_next(request)
