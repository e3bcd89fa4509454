from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from auto_appraisal.config import Settings
from auto_appraisal.db.store import RemoteStore
from auto_appraisal.deps import (
    get_claim_list_service,
    get_new_claim_service,
    get_settings,
    get_store,
    require_session,
)
from auto_appraisal.models.claim import ClaimForm, SaveClaimRequest
from auto_appraisal.models.views import ClaimListView, NewClaimFormView
from auto_appraisal.routes.events import user_list_stream
from auto_appraisal.routes.responses import action_response
from auto_appraisal.services.claim_lists import ClaimListService
from auto_appraisal.services.new_claim import NewClaimService
from auto_appraisal.services.session import UserSession

router = APIRouter(prefix="/admin/claims", tags=["admin"], dependencies=[Depends(require_session)])


@router.get("", response_model=ClaimListView)
async def list_claims(
    archived: bool = Query(False, description="Show COMPLETED claims instead of active ones"),
    claims: ClaimListService = Depends(get_claim_list_service),
) -> ClaimListView:
    return await claims.admin_claims(archived=archived)


@router.get("/events")
async def claim_events(
    request: Request,
    archived: bool = Query(False),
    session: UserSession = Depends(require_session),
    store: RemoteStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """Server-sent events: the full list, re-sent after any change to the claims table"""
    frames = user_list_stream(
        request, store, session.access_token, settings.DISPLAY_TIMEZONE,
        lambda claims: claims.admin_claims(archived=archived),
    )
    return StreamingResponse(frames, media_type="text/event-stream")


@router.get("/new", response_model=NewClaimFormView)
async def new_claim_form(service: NewClaimService = Depends(get_new_claim_service)) -> NewClaimFormView:
    return await service.form()


@router.post("/new/preview-map")
async def preview_map(form: ClaimForm, service: NewClaimService = Depends(get_new_claim_service)):
    return action_response(await service.preview_map(form))


@router.post("/new")
async def save_claim(request: SaveClaimRequest, service: NewClaimService = Depends(get_new_claim_service)):
    """
    Create a claim. A duplicate claim_number answers 409 with a confirmation
    request; re-send with override=true to overwrite the existing claim.
    """
    result = await service.save(request, override=request.override)
    return action_response(result, ok_status=201 if not request.override else 200)
