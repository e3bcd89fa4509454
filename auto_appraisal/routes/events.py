from typing import AsyncIterator, Awaitable, Callable

import structlog
from fastapi import Request

from auto_appraisal.db.store import RemoteStore
from auto_appraisal.models.views import ClaimListView
from auto_appraisal.services.claim_lists import ClaimListService

log = structlog.get_logger()


async def list_event_stream(request: Request, views: AsyncIterator[ClaimListView]) -> AsyncIterator[str]:
    """Render list reloads as text/event-stream frames until the client goes away"""
    try:
        async for view in views:
            if await request.is_disconnected():
                log.info("claims.events.disconnected", path=request.url.path)
                break
            yield f"event: claims\ndata: {view.model_dump_json()}\n\n"
    finally:
        await views.aclose()


async def user_list_stream(
    request: Request,
    store: RemoteStore,
    access_token: str,
    tz: str,
    load: Callable[[ClaimListService], Awaitable[ClaimListView]],
) -> AsyncIterator[str]:
    """
    Stream a claim list as the signed-in user. The stream outlives the
    request's dependencies, so it binds and closes its own store.
    """
    bound = await store.for_token(access_token)
    claims = ClaimListService(bound, tz=tz)
    frames = list_event_stream(request, claims.watch(lambda: load(claims)))
    try:
        async for frame in frames:
            yield frame
    finally:
        await frames.aclose()
        await bound.close()
