from typing import Optional

import structlog

from auto_appraisal.config import Settings
from auto_appraisal.db.store import RemoteStore
from auto_appraisal.errors import GeocodeError, StoreError, UniqueViolation
from auto_appraisal.models.claim import ClaimForm, ClaimStatus
from auto_appraisal.models.results import ActionResult
from auto_appraisal.models.views import AssigneeOption, NewClaimFormView
from auto_appraisal.services.geocoding import Coordinates, Geocoder
from auto_appraisal.services.presenters import map_pin

log = structlog.get_logger()

CLAIMS_LIST_URL = "/admin/claims"
GEOCODE_FAILED = "Could not geocode address. Please verify it is correct."

# (field, message) in the order they are checked
REQUIRED_FIELDS = (
    ("claim_number", "Please enter a Claim Number"),
    ("customer_name", "Please enter a Customer Name"),
    ("address_line1", "Please enter an Address"),
)


def override_prompt(claim_number: str) -> str:
    return (
        f'A claim with the number "{claim_number}" already exists!\n\n'
        "Confirm to UPDATE the existing claim with this new data.\n"
        "Cancel to go back and change the claim number."
    )


class NewClaimService:

    def __init__(self, store: RemoteStore, geocoder: Geocoder, settings: Settings):
        self.store = store
        self.geocoder = geocoder
        self.settings = settings

    async def form(self) -> NewClaimFormView:
        """Blank form plus the profiles a claim can be assigned to"""
        profiles = await self.store.list_profiles()
        assignees = [AssigneeOption(value="", label="Unassigned")]
        for p in profiles:
            assignees.append(AssigneeOption(
                value=p["user_id"],
                label=f"{p.get('full_name') or p['user_id']} ({p.get('role')})",
            ))
        return NewClaimFormView(form=ClaimForm().model_dump(mode="json"), assignees=assignees)

    async def preview_map(self, form: ClaimForm) -> ActionResult:
        address = form.full_address()
        if not address:
            return ActionResult.failure("Please enter an address first")
        try:
            coords = await self.geocoder.ageocode(address)
        except GeocodeError:
            coords = None
        if coords is None:
            return ActionResult.failure(GEOCODE_FAILED)
        pin = map_pin(coords.lat, coords.lng, self.settings)
        return ActionResult.success(map=pin.model_dump())

    async def _coordinates(self, address: str) -> Optional[Coordinates]:
        if not address:
            return None
        try:
            return await self.geocoder.ageocode(address)
        except GeocodeError as e:
            # save goes ahead without a pin, same as a no-match
            log.warning("claims.save.geocode_failed", error=str(e))
            return None

    async def save(self, form: ClaimForm, override: bool = False) -> ActionResult:
        """
        Insert the claim as SCHEDULED. A claim_number that already exists
        comes back as a confirmation request; confirming re-runs save with
        override=True, which updates the existing row in place.
        """
        for field, message in REQUIRED_FIELDS:
            if not getattr(form, field):
                return ActionResult.failure(message, level="warning")

        coords = await self._coordinates(form.full_address())
        row = form.to_row()
        row["lat"] = coords.lat if coords else None
        row["lng"] = coords.lng if coords else None

        if override:
            try:
                await self.store.update_claims(row, "claim_number", form.claim_number)
            except StoreError as e:
                log.error("claims.save.update_failed", claim_number=form.claim_number, error=e.message)
                return ActionResult.failure(f"Error updating claim: {e.message}")
            log.info("claims.save.updated", claim_number=form.claim_number)
            return ActionResult.success("Claim updated successfully!", redirect_to=CLAIMS_LIST_URL)

        row["status"] = ClaimStatus.SCHEDULED.value
        try:
            await self.store.insert_claim(row)
        except UniqueViolation:
            log.info("claims.save.conflict", claim_number=form.claim_number)
            return ActionResult.needs_confirmation("override_claim", override_prompt(form.claim_number))
        except StoreError as e:
            log.error("claims.save.insert_failed", claim_number=form.claim_number, error=e.message)
            return ActionResult.failure(f"Error: {e.message}")
        log.info("claims.save.inserted", claim_number=form.claim_number)
        return ActionResult.success("Claim saved successfully!", redirect_to=CLAIMS_LIST_URL)
