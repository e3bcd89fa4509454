"""
Address lookup against the Nominatim search API.

Nominatim's usage policy allows at most one request per second, so the
geocoder spaces request starts by GEOCODER_MIN_INTERVAL_SECONDS. One
Geocoder lives on the application, which makes the spacing process-wide.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

import requests
import structlog
from starlette.concurrency import run_in_threadpool

from auto_appraisal.config import Settings
from auto_appraisal.errors import GeocodeError

log = structlog.get_logger()


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


class Geocoder:

    def __init__(
        self,
        base_url: str,
        user_agent: str,
        min_interval: float = 1.1,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = base_url
        self.user_agent = user_agent
        self.min_interval = min_interval
        self.timeout = timeout
        self.session = session or requests.Session()
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_start: Optional[float] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Geocoder":
        return cls(
            base_url=settings.GEOCODER_URL,
            user_agent=settings.GEOCODER_USER_AGENT,
            min_interval=settings.GEOCODER_MIN_INTERVAL_SECONDS,
            timeout=settings.GEOCODER_TIMEOUT_SECONDS,
        )

    def _wait_turn(self) -> None:
        with self._lock:
            if self._last_start is not None:
                wait = self._last_start + self.min_interval - self._clock()
                if wait > 0:
                    self._sleep(wait)
            self._last_start = self._clock()

    def geocode(self, address: str) -> Optional[Coordinates]:
        """
        Look up an address and return the first match.

        Returns None when the service has no match. Raises GeocodeError when
        the lookup itself fails.
        """
        self._wait_turn()
        try:
            resp = self.session.get(
                self.base_url,
                params={"q": address, "format": "json", "limit": "1"},
                headers={"Accept-Language": "en", "User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            matches = resp.json()
        except (requests.RequestException, ValueError) as e:
            log.warning("geocode.request_failed", address=address, error=str(e))
            raise GeocodeError(str(e)) from e

        if not isinstance(matches, list):
            raise GeocodeError(f"Unexpected geocoding response: {matches!r}")
        if not matches:
            log.info("geocode.no_match", address=address)
            return None

        first = matches[0]
        try:
            coords = Coordinates(lat=float(first["lat"]), lng=float(first["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            raise GeocodeError(f"Malformed geocoding result: {first!r}") from e
        log.info("geocode.match", address=address, lat=coords.lat, lng=coords.lng)
        return coords

    async def ageocode(self, address: str) -> Optional[Coordinates]:
        # requests blocks; keep it off the event loop
        return await run_in_threadpool(self.geocode, address)
