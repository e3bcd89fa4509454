from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile

from auto_appraisal.deps import get_claim_detail_service, require_session
from auto_appraisal.models.claim import AppointmentPatch, ClaimDeletion, StatusChange
from auto_appraisal.models.views import ClaimDetailView, LightboxFrame
from auto_appraisal.routes.responses import action_response
from auto_appraisal.services.claim_detail import ClaimDetailService, IncomingPhoto

router = APIRouter(prefix="/claim/{claim_id}", tags=["claim"], dependencies=[Depends(require_session)])


@router.get("", response_model=ClaimDetailView)
async def claim_detail(claim_id: str, service: ClaimDetailService = Depends(get_claim_detail_service)) -> ClaimDetailView:
    return await service.load(claim_id)


@router.post("/status")
async def change_status(
    claim_id: str,
    change: StatusChange,
    service: ClaimDetailService = Depends(get_claim_detail_service),
):
    return action_response(await service.set_status(claim_id, change.status))


@router.patch("/appointment")
async def edit_appointment(
    claim_id: str,
    patch: AppointmentPatch,
    service: ClaimDetailService = Depends(get_claim_detail_service),
):
    return action_response(await service.update_appointment(claim_id, patch))


@router.post("/photos")
async def upload_photos(
    claim_id: str,
    files: List[UploadFile] = File(..., description="One or more images from the camera or gallery"),
    service: ClaimDetailService = Depends(get_claim_detail_service),
):
    incoming = [IncomingPhoto(filename=f.filename or "photo", data=await f.read()) for f in files]
    result = await service.upload_photos(claim_id, incoming)
    # per-file errors ride along in the notices; only an all-failed batch is a 400
    return action_response(result, error_status=200 if result.data.get("uploaded") else 400)


@router.delete("/photos/{photo_id}")
async def delete_photo(
    claim_id: str,
    photo_id: str,
    confirmed: bool = Query(False),
    service: ClaimDetailService = Depends(get_claim_detail_service),
):
    return action_response(await service.delete_photo(claim_id, photo_id, confirmed=confirmed))


@router.get("/lightbox/{index}", response_model=LightboxFrame)
async def lightbox_frame(
    claim_id: str,
    index: int,
    service: ClaimDetailService = Depends(get_claim_detail_service),
) -> LightboxFrame:
    frame = await service.lightbox(claim_id, index)
    if frame is None:
        raise HTTPException(status_code=404, detail=f"No photo at index {index}")
    return frame


@router.post("/delete")
async def delete_claim(
    claim_id: str,
    request: ClaimDeletion,
    service: ClaimDetailService = Depends(get_claim_detail_service),
):
    return action_response(await service.delete_claim(claim_id, request))
