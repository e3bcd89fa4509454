"""Formatting shared by the list and detail views."""

from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote
from zoneinfo import ZoneInfo

from auto_appraisal.config import Settings
from auto_appraisal.models.claim import Claim, join_address
from auto_appraisal.models.views import MapPin

NO_APPOINTMENT = "No appointment scheduled"
NO_VEHICLE = "No vehicle info"
NO_COORDINATES = "No coordinates yet"
VIN_PREVIEW_LENGTH = 10


def format_appointment(value: Optional[datetime], tz: str = "UTC") -> str:
    """e.g. "Mon, Jan 5, 2026, 3:04 PM" in the display timezone"""
    if value is None:
        return NO_APPOINTMENT
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    local = value.astimezone(ZoneInfo(tz))
    hour = local.hour % 12 or 12
    return f"{local:%a, %b} {local.day}, {local.year}, {hour}:{local:%M %p}"


def vehicle_summary(claim: Claim) -> str:
    parts = [str(p) for p in (claim.vehicle_year, claim.vehicle_make, claim.vehicle_model) if p]
    return " ".join(parts) if parts else NO_VEHICLE


def vin_preview(vin: Optional[str]) -> Optional[str]:
    if not vin:
        return None
    return f"{vin[:VIN_PREVIEW_LENGTH]}..."


def map_pin(lat: float, lng: float, settings: Settings) -> MapPin:
    return MapPin(
        lat=lat,
        lng=lng,
        zoom=settings.MAP_ZOOM,
        tile_url=settings.MAP_TILE_URL,
        attribution=settings.MAP_ATTRIBUTION,
    )


def google_maps_url(claim: Claim) -> str:
    query = join_address(claim.address_line1, claim.city, claim.state, claim.postal_code)
    return f"https://www.google.com/maps?q={quote(query)}"


def photo_download_name(claim_number: str, photo_id: str) -> str:
    return f"claim-{claim_number}-photo-{photo_id}.jpg"
