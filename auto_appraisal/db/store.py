"""
Remote store interface.

Everything the application persists lives on the hosted platform: the
claims, claim_photos and profiles tables, the photo bucket, auth and the
table change feed. Services only ever see this interface. One store is
constructed at start-up with the project key; each request then works
through a copy bound to the caller's access token (for_token).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from auto_appraisal.models.claim import ClaimStatus

CLAIMS_TABLE = "claims"
PHOTOS_TABLE = "claim_photos"
PROFILES_TABLE = "profiles"

ChangeCallback = Callable[[Dict[str, Any]], None]


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: Optional[str] = None


@dataclass(frozen=True)
class AuthSession:
    user: AuthUser
    access_token: str


@dataclass(frozen=True)
class StatusFilter:
    """status IN (...) with an optional "OR status IS NULL" arm"""
    statuses: tuple
    include_null: bool = False

    def matches(self, status: Optional[str]) -> bool:
        if status is None:
            return self.include_null
        return str(getattr(status, "value", status)) in self.statuses

    def to_postgrest(self) -> str:
        """PostgREST or=() expression, e.g. status.is.null,status.in.(SCHEDULED,IN_PROGRESS)"""
        arms = []
        if self.include_null:
            arms.append("status.is.null")
        arms.append(f"status.in.({','.join(self.statuses)})")
        return ",".join(arms)


ACTIVE_STATUSES = StatusFilter(
    statuses=(ClaimStatus.SCHEDULED.value, ClaimStatus.IN_PROGRESS.value),
    include_null=True,
)
COMPLETED_STATUSES = StatusFilter(statuses=(ClaimStatus.COMPLETED.value,))


class Subscription(ABC):
    @abstractmethod
    async def close(self) -> None:
        ...


class RemoteStore(ABC):

    # auth

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthSession:
        ...

    @abstractmethod
    async def get_user(self, access_token: str) -> Optional[AuthUser]:
        ...

    @abstractmethod
    async def sign_out(self, access_token: str) -> None:
        ...

    # profiles

    @abstractmethod
    async def fetch_profile(self, user_id: str) -> Optional[dict]:
        ...

    @abstractmethod
    async def list_profiles(self) -> List[dict]:
        ...

    # claims

    @abstractmethod
    async def list_claims(
        self,
        columns: Sequence[str],
        status_filter: StatusFilter,
        order_by: str,
        descending: bool = False,
    ) -> List[dict]:
        ...

    @abstractmethod
    async def get_claim(self, claim_id: str) -> Optional[dict]:
        ...

    @abstractmethod
    async def insert_claim(self, row: dict) -> None:
        """Raises UniqueViolation when claim_number is taken"""

    @abstractmethod
    async def update_claims(self, patch: dict, column: str, value: Any) -> None:
        """UPDATE claims SET patch WHERE column = value"""

    @abstractmethod
    async def delete_claim(self, claim_id: str) -> None:
        ...

    # photos

    @abstractmethod
    async def list_photos(self, claim_id: str) -> List[dict]:
        """Newest first"""

    @abstractmethod
    async def insert_photo(self, claim_id: str, storage_path: str) -> None:
        ...

    @abstractmethod
    async def delete_photo(self, photo_id: str) -> None:
        ...

    @abstractmethod
    async def delete_photos_for_claim(self, claim_id: str) -> None:
        ...

    # object storage

    @abstractmethod
    async def upload_object(self, path: str, data: bytes, content_type: str) -> None:
        ...

    @abstractmethod
    async def remove_object(self, path: str) -> None:
        ...

    @abstractmethod
    def public_url(self, path: str) -> str:
        ...

    # change feed

    @abstractmethod
    async def subscribe(self, table: str, callback: ChangeCallback) -> Subscription:
        """Invoke callback on every insert, update or delete anywhere in table"""

    @abstractmethod
    async def for_token(self, access_token: str) -> "RemoteStore":
        """
        A store whose table, storage and change-feed calls run as the
        signed-in user, so the project's row-level policies see that user.
        The caller closes it.
        """

    async def close(self) -> None:
        return None
