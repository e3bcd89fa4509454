import uuid
from typing import Any, List, Optional, Sequence

import structlog
from postgrest.exceptions import APIError
from supabase import AsyncClient, AuthError, acreate_client
from supabase.lib.client_options import AsyncClientOptions

from auto_appraisal.config import Settings
from auto_appraisal.db.store import (
    CLAIMS_TABLE,
    PHOTOS_TABLE,
    PROFILES_TABLE,
    AuthSession,
    AuthUser,
    ChangeCallback,
    RemoteStore,
    StatusFilter,
    Subscription,
)
from auto_appraisal.errors import ConfigurationError, StoreError, UniqueViolation

log = structlog.get_logger()


class SupabaseSubscription(Subscription):
    def __init__(self, client: AsyncClient, channel):
        self.client = client
        self.channel = channel

    async def close(self) -> None:
        await self.client.remove_channel(self.channel)
        log.info("supabase.channel_removed", topic=getattr(self.channel, "topic", None))


class SupabaseStore(RemoteStore):
    """RemoteStore backed by a Supabase project through the async client"""

    def __init__(self, client: AsyncClient, url: str, key: str, bucket: str, access_token: Optional[str] = None):
        self.client = client
        self.url = url.rstrip("/")
        self.key = key
        self.bucket = bucket
        self.access_token = access_token

    @classmethod
    async def connect(cls, settings: Settings) -> "SupabaseStore":
        if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_KEY must be set")
        client = await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
        log.info("supabase.connected", url=settings.SUPABASE_URL, bucket=settings.PHOTO_BUCKET)
        return cls(client, settings.SUPABASE_URL, settings.SUPABASE_KEY, settings.PHOTO_BUCKET)

    async def for_token(self, access_token: str) -> "SupabaseStore":
        # The client sends an Authorization header from its options in place
        # of the project key, for both PostgREST and storage.
        client = await acreate_client(
            self.url,
            self.key,
            options=AsyncClientOptions(
                headers={"Authorization": f"Bearer {access_token}"},
                persist_session=False,
                auto_refresh_token=False,
            ),
        )
        return SupabaseStore(client, self.url, self.key, self.bucket, access_token=access_token)

    async def close(self) -> None:
        await self.client.remove_all_channels()
        if self.access_token:
            await self.client.postgrest.aclose()
            return
        log.info("supabase.disconnected")

    async def _execute(self, query, operation: str) -> List[dict]:
        try:
            response = await query.execute()
        except APIError as e:
            message = e.message or str(e)
            log.warning("supabase.query_failed", operation=operation, code=e.code, error=message)
            if e.code == UniqueViolation.CODE:
                raise UniqueViolation(message) from e
            raise StoreError(message, e.code) from e
        return response.data or []

    # auth

    async def sign_in(self, email: str, password: str) -> AuthSession:
        # A sign-in stores the session on the client it ran on, so it gets a
        # throwaway client instead of the shared one.
        auth_client = await acreate_client(
            self.url,
            self.key,
            options=AsyncClientOptions(persist_session=False, auto_refresh_token=False),
        )
        try:
            response = await auth_client.auth.sign_in_with_password({"email": email, "password": password})
        except AuthError as e:
            raise StoreError(e.message, getattr(e, "code", None)) from e
        user = response.user
        return AuthSession(
            user=AuthUser(id=user.id, email=user.email),
            access_token=response.session.access_token,
        )

    async def get_user(self, access_token: str) -> Optional[AuthUser]:
        try:
            response = await self.client.auth.get_user(access_token)
        except AuthError as e:
            log.info("supabase.token_rejected", error=e.message)
            return None
        if not response or not response.user:
            return None
        return AuthUser(id=response.user.id, email=response.user.email)

    async def sign_out(self, access_token: str) -> None:
        try:
            await self.client.auth.admin.sign_out(access_token)
        except AuthError as e:
            raise StoreError(e.message, getattr(e, "code", None)) from e

    # profiles

    async def fetch_profile(self, user_id: str) -> Optional[dict]:
        rows = await self._execute(
            self.client.table(PROFILES_TABLE)
            .select("user_id, role, full_name")
            .eq("user_id", user_id)
            .limit(1),
            "fetch_profile",
        )
        return rows[0] if rows else None

    async def list_profiles(self) -> List[dict]:
        return await self._execute(
            self.client.table(PROFILES_TABLE).select("user_id, full_name, role"),
            "list_profiles",
        )

    # claims

    async def list_claims(
        self,
        columns: Sequence[str],
        status_filter: StatusFilter,
        order_by: str,
        descending: bool = False,
    ) -> List[dict]:
        query = self.client.table(CLAIMS_TABLE).select(",".join(columns))
        if status_filter.include_null:
            query = query.or_(status_filter.to_postgrest())
        elif len(status_filter.statuses) == 1:
            query = query.eq("status", status_filter.statuses[0])
        else:
            query = query.in_("status", list(status_filter.statuses))
        query = query.order(order_by, desc=descending)
        return await self._execute(query, "list_claims")

    async def get_claim(self, claim_id: str) -> Optional[dict]:
        rows = await self._execute(
            self.client.table(CLAIMS_TABLE).select("*").eq("id", claim_id).limit(1),
            "get_claim",
        )
        return rows[0] if rows else None

    async def insert_claim(self, row: dict) -> None:
        await self._execute(self.client.table(CLAIMS_TABLE).insert(row), "insert_claim")

    async def update_claims(self, patch: dict, column: str, value: Any) -> None:
        await self._execute(
            self.client.table(CLAIMS_TABLE).update(patch).eq(column, value),
            "update_claims",
        )

    async def delete_claim(self, claim_id: str) -> None:
        await self._execute(self.client.table(CLAIMS_TABLE).delete().eq("id", claim_id), "delete_claim")

    # photos

    async def list_photos(self, claim_id: str) -> List[dict]:
        return await self._execute(
            self.client.table(PHOTOS_TABLE)
            .select("*")
            .eq("claim_id", claim_id)
            .order("created_at", desc=True),
            "list_photos",
        )

    async def insert_photo(self, claim_id: str, storage_path: str) -> None:
        await self._execute(
            self.client.table(PHOTOS_TABLE).insert({"claim_id": claim_id, "storage_path": storage_path}),
            "insert_photo",
        )

    async def delete_photo(self, photo_id: str) -> None:
        await self._execute(self.client.table(PHOTOS_TABLE).delete().eq("id", photo_id), "delete_photo")

    async def delete_photos_for_claim(self, claim_id: str) -> None:
        await self._execute(
            self.client.table(PHOTOS_TABLE).delete().eq("claim_id", claim_id),
            "delete_photos_for_claim",
        )

    # object storage

    async def upload_object(self, path: str, data: bytes, content_type: str) -> None:
        try:
            await self.client.storage.from_(self.bucket).upload(
                path=path, file=data, file_options={"content-type": content_type}
            )
        except Exception as e:
            log.warning("supabase.upload_failed", path=path, error=str(e))
            raise StoreError(getattr(e, "message", None) or str(e)) from e

    async def remove_object(self, path: str) -> None:
        try:
            await self.client.storage.from_(self.bucket).remove([path])
        except Exception as e:
            log.warning("supabase.remove_failed", path=path, error=str(e))
            raise StoreError(getattr(e, "message", None) or str(e)) from e

    def public_url(self, path: str) -> str:
        return f"{self.url}/storage/v1/object/public/{self.bucket}/{path}"

    # change feed

    async def subscribe(self, table: str, callback: ChangeCallback) -> Subscription:
        if self.access_token:
            await self.client.realtime.set_auth(self.access_token)
        channel = self.client.channel(f"{table}-list-{uuid.uuid4().hex[:8]}")
        channel.on_postgres_changes("*", schema="public", table=table, callback=callback)
        await channel.subscribe()
        log.info("supabase.channel_subscribed", table=table, topic=getattr(channel, "topic", None))
        return SupabaseSubscription(self.client, channel)
