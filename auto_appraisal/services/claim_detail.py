"""
Single-claim view: status and appointment edits, photos, lightbox and the
delete paths.

Every mutation is followed by a full reload of the claim and its photos.
"""

import uuid
from dataclasses import dataclass
from typing import List, Optional

import structlog
from starlette.concurrency import run_in_threadpool

from auto_appraisal.config import Settings
from auto_appraisal.db.store import RemoteStore
from auto_appraisal.errors import ClaimNotFound, InvalidTransition, PhotoProcessingError, StoreError
from auto_appraisal.models.claim import AppointmentPatch, Claim, ClaimDeletion, ClaimPhoto
from auto_appraisal.models.results import ActionResult, Notice
from auto_appraisal.models.views import ClaimDetailView, LightboxFrame, PhotoView
from auto_appraisal.services import lightbox
from auto_appraisal.services.claim_deletion import delete_claim_cascade
from auto_appraisal.services.images import compress_image
from auto_appraisal.services.presenters import (
    NO_COORDINATES,
    google_maps_url,
    map_pin,
    photo_download_name,
)
from auto_appraisal.services.status import status_color, validate_transition

log = structlog.get_logger()

DELETE_CONFIRM_TEXT = "DELETE"
PHOTO_CONTENT_TYPE = "image/jpeg"


@dataclass(frozen=True)
class IncomingPhoto:
    filename: str
    data: bytes


def photo_storage_path(claim_id: str) -> str:
    return f"claim/{claim_id}/{uuid.uuid4()}.jpg"


def delete_warning(claim: Claim) -> str:
    return (
        "WARNING: Are you sure you want to PERMANENTLY DELETE this claim?\n\n"
        f"Claim #{claim.claim_number}\n"
        f"Customer: {claim.customer_name}\n\n"
        "This action CANNOT be undone and will delete:\n"
        "- The claim record\n"
        "- All associated photos\n"
        "- All related data\n\n"
        f'Type "{DELETE_CONFIRM_TEXT}" in the next step to confirm.'
    )


class ClaimDetailService:

    def __init__(self, store: RemoteStore, settings: Settings):
        self.store = store
        self.settings = settings

    async def _claim(self, claim_id: str) -> Claim:
        row = await self.store.get_claim(claim_id)
        if not row:
            raise ClaimNotFound(claim_id)
        return Claim.model_validate(row)

    async def _photo_rows(self, claim_id: str) -> List[ClaimPhoto]:
        return [ClaimPhoto.model_validate(r) for r in await self.store.list_photos(claim_id)]

    def _photo_views(self, claim: Claim, photos: List[ClaimPhoto]) -> List[PhotoView]:
        return [
            PhotoView(
                id=p.id,
                index=i,
                storage_path=p.storage_path,
                url=self.store.public_url(p.storage_path),
                download_name=photo_download_name(claim.claim_number, p.id),
            )
            for i, p in enumerate(photos)
        ]

    async def load(self, claim_id: str) -> ClaimDetailView:
        claim = await self._claim(claim_id)
        photos = self._photo_views(claim, await self._photo_rows(claim_id))
        has_pin = claim.lat is not None and claim.lng is not None
        return ClaimDetailView(
            claim=claim,
            status_color=status_color(claim.status),
            phone_link=f"tel:{claim.phone}" if claim.phone else None,
            email_link=f"mailto:{claim.email}" if claim.email else None,
            map=map_pin(claim.lat, claim.lng, self.settings) if has_pin else None,
            map_placeholder=None if has_pin else NO_COORDINATES,
            google_maps_url=google_maps_url(claim),
            photos=photos,
            photo_count=len(photos),
        )

    async def _reloaded(self, claim_id: str, result: ActionResult) -> ActionResult:
        result.data["detail"] = (await self.load(claim_id)).model_dump(mode="json")
        return result

    async def _patch(self, claim_id: str, patch: dict) -> ActionResult:
        try:
            await self.store.update_claims(patch, "id", claim_id)
        except StoreError as e:
            log.error("claims.update_failed", claim_id=claim_id, fields=sorted(patch), error=e.message)
            return ActionResult.failure(e.message)
        log.info("claims.updated", claim_id=claim_id, fields=sorted(patch))
        return await self._reloaded(claim_id, ActionResult.success())

    async def set_status(self, claim_id: str, target) -> ActionResult:
        claim = await self._claim(claim_id)
        try:
            status = validate_transition(claim.status, target)
        except InvalidTransition as e:
            return ActionResult.failure(str(e))
        return await self._patch(claim_id, {"status": status.value})

    async def update_appointment(self, claim_id: str, patch: AppointmentPatch) -> ActionResult:
        # each field patches independently; only what was sent is written
        fields = patch.model_dump(mode="json", exclude_unset=True)
        if not fields:
            return ActionResult.failure("No appointment time given", level="warning")
        await self._claim(claim_id)
        return await self._patch(claim_id, fields)

    async def upload_photos(self, claim_id: str, files: List[IncomingPhoto]) -> ActionResult:
        """
        Compress, upload and record each file in turn. A failure on one file
        is reported and the rest of the batch carries on; earlier successes
        stay in place.
        """
        await self._claim(claim_id)
        notices: List[Notice] = []
        uploaded: List[str] = []

        for f in files:
            try:
                compressed = await run_in_threadpool(
                    compress_image,
                    f.data,
                    self.settings.PHOTO_MAX_DIMENSION,
                    int(self.settings.PHOTO_MAX_SIZE_MB * 1024 * 1024),
                )
            except PhotoProcessingError as e:
                log.warning("photos.compress_failed", claim_id=claim_id, file_name=f.filename, error=str(e))
                notices.append(Notice(level="error", message=f"Error processing {f.filename}: {e}"))
                continue

            path = photo_storage_path(claim_id)
            try:
                await self.store.upload_object(path, compressed, PHOTO_CONTENT_TYPE)
            except StoreError as e:
                log.warning("photos.upload_failed", claim_id=claim_id, file_name=f.filename, error=e.message)
                notices.append(Notice(level="error", message=f"Error uploading {f.filename}: {e.message}"))
                continue

            try:
                await self.store.insert_photo(claim_id, path)
            except StoreError as e:
                log.warning("photos.record_failed", claim_id=claim_id, path=path, error=e.message)
                notices.append(Notice(level="error", message=f"Error saving {f.filename}: {e.message}"))
                continue
            uploaded.append(path)

        log.info("photos.upload_batch", claim_id=claim_id, files=len(files), uploaded=len(uploaded))
        if uploaded:
            notices.insert(0, Notice(level="success", message=f"Uploaded {len(uploaded)} of {len(files)} photo(s)"))
        result = ActionResult(
            ok=len(uploaded) == len(files),
            notices=notices,
            data={"uploaded": uploaded, "clear_selection": True},
        )
        return await self._reloaded(claim_id, result)

    async def delete_photo(self, claim_id: str, photo_id: str, confirmed: bool = False) -> ActionResult:
        """Bucket object first, then the record. A failed object removal keeps the record."""
        photo = next((p for p in await self._photo_rows(claim_id) if p.id == photo_id), None)
        if photo is None:
            return ActionResult.failure("Photo not found")
        if not confirmed:
            return ActionResult.needs_confirmation("delete_photo", "Delete this photo? This cannot be undone.")

        try:
            await self.store.remove_object(photo.storage_path)
        except StoreError as e:
            return ActionResult.failure(f"Error deleting photo from storage: {e.message}")

        try:
            await self.store.delete_photo(photo.id)
        except StoreError as e:
            return ActionResult.failure(f"Error deleting photo record: {e.message}")

        log.info("photos.deleted", claim_id=claim_id, photo_id=photo_id)
        return await self._reloaded(claim_id, ActionResult.success(close_lightbox=True))

    async def delete_claim(self, claim_id: str, request: ClaimDeletion) -> ActionResult:
        claim = await self._claim(claim_id)
        if not request.confirmed:
            return ActionResult.needs_confirmation("delete_claim", delete_warning(claim), require_text=DELETE_CONFIRM_TEXT)
        if request.confirm_text != DELETE_CONFIRM_TEXT:
            return ActionResult.failure("Deletion cancelled - text did not match.", level="info")

        photos = await self._photo_rows(claim_id)
        report = await delete_claim_cascade(self.store, claim_id, [p.storage_path for p in photos])
        if not report.claim_deleted:
            return ActionResult.failure(f"Error deleting claim: {report.error}", report=report.to_dict())
        return ActionResult.success("Claim permanently deleted.", redirect_to="/admin/claims", report=report.to_dict())

    async def lightbox(self, claim_id: str, index: int) -> Optional[LightboxFrame]:
        """Frame at index, or None when the claim has no photo there"""
        claim = await self._claim(claim_id)
        photos = self._photo_views(claim, await self._photo_rows(claim_id))
        try:
            return lightbox.frame(photos, index)
        except IndexError:
            return None
