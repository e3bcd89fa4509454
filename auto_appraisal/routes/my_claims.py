from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from auto_appraisal.config import Settings
from auto_appraisal.db.store import RemoteStore
from auto_appraisal.deps import get_claim_list_service, get_settings, get_store, require_session
from auto_appraisal.models.views import ClaimListView
from auto_appraisal.routes.events import user_list_stream
from auto_appraisal.services.claim_lists import ClaimListService
from auto_appraisal.services.session import UserSession

router = APIRouter(prefix="/my-claims", tags=["appraiser"], dependencies=[Depends(require_session)])


# TODO: scope to claims.assigned_to once product confirms "My Claims" should
# hide claims assigned to other appraisers.
@router.get("", response_model=ClaimListView)
async def my_claims(
    completed: bool = Query(False, description="Show COMPLETED claims instead of active ones"),
    claims: ClaimListService = Depends(get_claim_list_service),
) -> ClaimListView:
    return await claims.my_claims(completed=completed)


@router.get("/events")
async def my_claim_events(
    request: Request,
    completed: bool = Query(False),
    session: UserSession = Depends(require_session),
    store: RemoteStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    frames = user_list_stream(
        request, store, session.access_token, settings.DISPLAY_TIMEZONE,
        lambda claims: claims.my_claims(completed=completed),
    )
    return StreamingResponse(frames, media_type="text/event-stream")
