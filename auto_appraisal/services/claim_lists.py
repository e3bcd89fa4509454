"""
Admin claim list and the appraiser's "My Claims" list.

Both views reload in full whenever anything in the claims table changes.
The appraiser view applies no assignee filter; it lists every active (or
completed) claim, same as the admin view.
"""

import asyncio
from typing import AsyncIterator, Awaitable, Callable, List

import structlog

from auto_appraisal.db.store import (
    ACTIVE_STATUSES,
    CLAIMS_TABLE,
    COMPLETED_STATUSES,
    RemoteStore,
)
from auto_appraisal.models.claim import Claim
from auto_appraisal.models.views import ClaimCard, ClaimListView
from auto_appraisal.services.presenters import (
    NO_APPOINTMENT,
    NO_VEHICLE,
    format_appointment,
    vehicle_summary,
    vin_preview,
)
from auto_appraisal.services.status import status_color

log = structlog.get_logger()

ADMIN_COLUMNS = (
    "id", "claim_number", "customer_name", "status", "vin", "vehicle_year",
    "vehicle_make", "vehicle_model", "assigned_to", "appointment_start", "appointment_end",
)
APPRAISER_COLUMNS = (
    "id", "claim_number", "customer_name", "status", "appointment_start",
    "vin", "vehicle_year", "vehicle_make", "vehicle_model",
)


def to_card(claim: Claim, tz: str, show_assignment: bool) -> ClaimCard:
    appointment = format_appointment(claim.appointment_start, tz)
    vehicle = vehicle_summary(claim)
    return ClaimCard(
        id=claim.id,
        href=f"/claim/{claim.id}",
        claim_number=claim.claim_number,
        customer_name=claim.customer_name,
        status=claim.status,
        status_color=status_color(claim.status),
        appointment=appointment,
        has_appointment=appointment != NO_APPOINTMENT,
        vin_preview=vin_preview(claim.vin),
        vehicle=vehicle,
        has_vehicle=vehicle != NO_VEHICLE,
        assigned=("Yes" if claim.assigned_to else "Unassigned") if show_assignment else None,
    )


class ClaimListService:

    def __init__(self, store: RemoteStore, tz: str = "UTC"):
        self.store = store
        self.tz = tz

    async def _cards(self, columns, status_filter, order_by, descending, show_assignment) -> List[ClaimCard]:
        rows = await self.store.list_claims(columns, status_filter, order_by=order_by, descending=descending)
        return [to_card(Claim.model_validate(r), self.tz, show_assignment) for r in rows]

    async def admin_claims(self, archived: bool = False) -> ClaimListView:
        log.info("claims.list.fetch_start", view="admin", archived=archived)
        cards = await self._cards(
            ADMIN_COLUMNS,
            COMPLETED_STATUSES if archived else ACTIVE_STATUSES,
            order_by="created_at",
            descending=True,
            show_assignment=True,
        )
        log.info("claims.list.fetch_complete", view="admin", archived=archived, count=len(cards))
        return ClaimListView(
            title="Archived Claims" if archived else "Active Claims",
            archived=archived,
            cards=cards,
            empty_message=None if cards else "No claims yet. Create your first claim!",
        )

    async def my_claims(self, completed: bool = False) -> ClaimListView:
        log.info("claims.list.fetch_start", view="appraiser", completed=completed)
        cards = await self._cards(
            APPRAISER_COLUMNS,
            COMPLETED_STATUSES if completed else ACTIVE_STATUSES,
            order_by="appointment_start",
            descending=False,
            show_assignment=False,
        )
        log.info("claims.list.fetch_complete", view="appraiser", completed=completed, count=len(cards))
        return ClaimListView(
            title="My Completed Claims" if completed else "My Active Claims",
            archived=completed,
            cards=cards,
            empty_message=None if cards else "No claims assigned to you yet.",
        )

    async def watch(self, load: Callable[[], Awaitable[ClaimListView]]) -> AsyncIterator[ClaimListView]:
        """
        Yield load() once, then again after every change to the claims table.

        Changes that pile up while a reload is running collapse into one
        reload. The subscription is released when the consumer stops.
        """
        changes: asyncio.Queue = asyncio.Queue()
        loop = asyncio.get_running_loop()

        def on_change(payload):
            loop.call_soon_threadsafe(changes.put_nowait, payload)

        subscription = await self.store.subscribe(CLAIMS_TABLE, on_change)
        try:
            yield await load()
            while True:
                payload = await changes.get()
                while not changes.empty():
                    changes.get_nowait()
                log.info("claims.list.change", change=_event_type(payload))
                yield await load()
        finally:
            await subscription.close()


def _event_type(payload) -> str:
    if isinstance(payload, dict):
        return str(payload.get("eventType") or payload.get("type") or "*")
    return "*"
