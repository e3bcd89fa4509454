"""In-memory stand-ins for the remote store and the geocoder."""

import copy
import itertools
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from auto_appraisal.db.store import (
    CLAIMS_TABLE,
    PHOTOS_TABLE,
    AuthSession,
    AuthUser,
    RemoteStore,
    StatusFilter,
    Subscription,
)
from auto_appraisal.errors import GeocodeError, StoreError, UniqueViolation
from auto_appraisal.services.geocoding import Coordinates

BASE_TIME = datetime(2026, 1, 5, 15, 0, tzinfo=timezone.utc)


class FakeSubscription(Subscription):
    def __init__(self, store: "InMemoryStore", table: str, callback):
        self.store = store
        self.table = table
        self.callback = callback
        self.closed = False

    async def close(self) -> None:
        self.closed = True
        self.store.subscriptions.remove(self)


class InMemoryStore(RemoteStore):
    """
    Tables are lists of dicts. Failure switches mimic platform errors:
    fail_upload_for / fail_remove_for hold storage paths (or "*"), and
    fail_next maps an operation name to an error message raised once.

    for_token() returns a copy sharing every table; calls made through it are
    logged in token_log with the token they ran as.
    """

    def __init__(self):
        self.users: Dict[str, dict] = {}        # access token -> {"id", "email", "password"}
        self.profiles: List[dict] = []
        self.claims: List[dict] = []
        self.photos: List[dict] = []
        self.objects: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}
        self.subscriptions: List[FakeSubscription] = []
        self.signed_out: List[str] = []
        self.fail_upload_for: set = set()
        self.fail_remove_for: set = set()
        self.fail_next: Dict[str, str] = {}
        self.acting_token: Optional[str] = None
        self.token_log: List[tuple] = []        # (operation, token or None)
        self.closed_tokens: List[str] = []
        self._ids = itertools.count(1)
        self._clock = itertools.count(0)

    # helpers for tests

    def add_user(self, token: str, user_id: str, role: Optional[str] = "admin", email: str = "user@example.com",
                 password: str = "secret", full_name: Optional[str] = None) -> None:
        self.users[token] = {"id": user_id, "email": email, "password": password}
        if role is not None:
            self.profiles.append({"user_id": user_id, "role": role, "full_name": full_name})

    def add_claim(self, **fields) -> dict:
        row = {
            "id": f"claim-{next(self._ids)}",
            "claim_number": fields.pop("claim_number", f"CN-{len(self.claims) + 1}"),
            "customer_name": fields.pop("customer_name", "Pat Doe"),
            "address_line1": fields.pop("address_line1", "1 Main St"),
            "status": fields.pop("status", "SCHEDULED"),
            "created_at": self._now().isoformat(),
        }
        row.update(fields)
        self.claims.append(row)
        return row

    def add_photo(self, claim_id: str, storage_path: Optional[str] = None, data: bytes = b"jpeg") -> dict:
        path = storage_path or f"claim/{claim_id}/{next(self._ids)}.jpg"
        self.objects[path] = data
        row = {"id": f"photo-{next(self._ids)}", "claim_id": claim_id, "storage_path": path,
               "created_at": self._now().isoformat()}
        self.photos.append(row)
        return row

    def claims_numbered(self, claim_number: str) -> List[dict]:
        return [c for c in self.claims if c["claim_number"] == claim_number]

    def _now(self) -> datetime:
        return BASE_TIME + timedelta(seconds=next(self._clock))

    def _maybe_fail(self, operation: str) -> None:
        self.token_log.append((operation, self.acting_token))
        message = self.fail_next.pop(operation, None)
        if message is not None:
            raise StoreError(message, code="XX000")

    def _notify(self, table: str, event: str) -> None:
        for sub in list(self.subscriptions):
            if sub.table == table:
                sub.callback({"eventType": event, "table": table})

    # auth

    async def sign_in(self, email: str, password: str) -> AuthSession:
        for token, user in self.users.items():
            if user["email"] == email and user["password"] == password:
                return AuthSession(user=AuthUser(id=user["id"], email=email), access_token=token)
        raise StoreError("Invalid login credentials", code="invalid_credentials")

    async def get_user(self, access_token: str) -> Optional[AuthUser]:
        user = self.users.get(access_token)
        return AuthUser(id=user["id"], email=user["email"]) if user else None

    async def sign_out(self, access_token: str) -> None:
        self.signed_out.append(access_token)

    # profiles

    async def fetch_profile(self, user_id: str) -> Optional[dict]:
        self._maybe_fail("fetch_profile")
        return next((dict(p) for p in self.profiles if p["user_id"] == user_id), None)

    async def list_profiles(self) -> List[dict]:
        return [dict(p) for p in self.profiles]

    # claims

    async def list_claims(self, columns: Sequence[str], status_filter: StatusFilter, order_by: str,
                          descending: bool = False) -> List[dict]:
        self._maybe_fail("list_claims")
        rows = [c for c in self.claims if status_filter.matches(c.get("status"))]
        # nulls first ascending, last descending
        with_value = sorted((c for c in rows if c.get(order_by) is not None), key=lambda c: c[order_by],
                            reverse=descending)
        without = [c for c in rows if c.get(order_by) is None]
        ordered = with_value + without if descending else without + with_value
        return [{k: c.get(k) for k in columns} for c in ordered]

    async def get_claim(self, claim_id: str) -> Optional[dict]:
        self._maybe_fail("get_claim")
        return next((dict(c) for c in self.claims if c["id"] == claim_id), None)

    async def insert_claim(self, row: dict) -> None:
        self._maybe_fail("insert_claim")
        if self.claims_numbered(row["claim_number"]):
            raise UniqueViolation('duplicate key value violates unique constraint "claims_claim_number_key"')
        stored = {"id": f"claim-{next(self._ids)}", "created_at": self._now().isoformat()}
        stored.update(row)
        self.claims.append(stored)
        self._notify(CLAIMS_TABLE, "INSERT")

    async def update_claims(self, patch: dict, column: str, value: Any) -> None:
        self._maybe_fail("update_claims")
        for c in self.claims:
            if c.get(column) == value:
                c.update(patch)
        self._notify(CLAIMS_TABLE, "UPDATE")

    async def delete_claim(self, claim_id: str) -> None:
        self._maybe_fail("delete_claim")
        self.claims[:] = [c for c in self.claims if c["id"] != claim_id]
        self._notify(CLAIMS_TABLE, "DELETE")

    # photos

    async def list_photos(self, claim_id: str) -> List[dict]:
        rows = [dict(p) for p in self.photos if p["claim_id"] == claim_id]
        return sorted(rows, key=lambda p: p["created_at"], reverse=True)

    async def insert_photo(self, claim_id: str, storage_path: str) -> None:
        self._maybe_fail("insert_photo")
        self.photos.append({"id": f"photo-{next(self._ids)}", "claim_id": claim_id,
                            "storage_path": storage_path, "created_at": self._now().isoformat()})
        self._notify(PHOTOS_TABLE, "INSERT")

    async def delete_photo(self, photo_id: str) -> None:
        self._maybe_fail("delete_photo")
        self.photos[:] = [p for p in self.photos if p["id"] != photo_id]

    async def delete_photos_for_claim(self, claim_id: str) -> None:
        self._maybe_fail("delete_photos_for_claim")
        self.photos[:] = [p for p in self.photos if p["claim_id"] != claim_id]

    # object storage

    async def upload_object(self, path: str, data: bytes, content_type: str) -> None:
        self.token_log.append(("upload_object", self.acting_token))
        if "*" in self.fail_upload_for or path in self.fail_upload_for:
            raise StoreError("The resource already exists")
        self.objects[path] = data
        self.content_types[path] = content_type

    async def remove_object(self, path: str) -> None:
        if "*" in self.fail_remove_for or path in self.fail_remove_for:
            raise StoreError("Object removal failed")
        self.objects.pop(path, None)

    def public_url(self, path: str) -> str:
        return f"https://example.supabase.co/storage/v1/object/public/claim-photos/{path}"

    # change feed

    async def subscribe(self, table: str, callback) -> Subscription:
        self.token_log.append(("subscribe", self.acting_token))
        sub = FakeSubscription(self, table, callback)
        self.subscriptions.append(sub)
        return sub

    async def for_token(self, access_token: str) -> "InMemoryStore":
        bound = copy.copy(self)
        bound.acting_token = access_token
        return bound

    async def close(self) -> None:
        if self.acting_token:
            self.closed_tokens.append(self.acting_token)


class FakeGeocoder:
    """Answers from a dict of address -> Coordinates; "*" matches anything"""

    def __init__(self, answers: Optional[Dict[str, Coordinates]] = None, fail: bool = False):
        self.answers = answers or {}
        self.fail = fail
        self.calls: List[str] = []

    def geocode(self, address: str) -> Optional[Coordinates]:
        self.calls.append(address)
        if self.fail:
            raise GeocodeError("connection refused")
        return self.answers.get(address) or self.answers.get("*")

    async def ageocode(self, address: str) -> Optional[Coordinates]:
        return self.geocode(address)
