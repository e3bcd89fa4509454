"""FastAPI dependencies: the injected store, settings, session gate and services."""

from typing import AsyncIterator, Optional

from fastapi import Depends, Request

from auto_appraisal.config import Settings
from auto_appraisal.db.store import RemoteStore
from auto_appraisal.errors import LoginRequired
from auto_appraisal.services.claim_detail import ClaimDetailService
from auto_appraisal.services.claim_lists import ClaimListService
from auto_appraisal.services.geocoding import Geocoder
from auto_appraisal.services.new_claim import NewClaimService
from auto_appraisal.services.session import SessionService, UserSession


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> RemoteStore:
    return request.app.state.store


def get_geocoder(request: Request) -> Geocoder:
    return request.app.state.geocoder


def access_token(request: Request, settings: Settings = Depends(get_settings)) -> Optional[str]:
    """Session cookie first, then an Authorization: Bearer header"""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    scheme, _, credentials = auth.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


async def get_user_store(
    token: Optional[str] = Depends(access_token),
    store: RemoteStore = Depends(get_store),
) -> AsyncIterator[RemoteStore]:
    """The app store bound to the caller's token for the length of the request"""
    if not token:
        yield store
        return
    bound = await store.for_token(token)
    try:
        yield bound
    finally:
        await bound.close()


def get_session_service(store: RemoteStore = Depends(get_user_store)) -> SessionService:
    return SessionService(store)


async def require_session(
    token: Optional[str] = Depends(access_token),
    sessions: SessionService = Depends(get_session_service),
) -> UserSession:
    session = await sessions.resolve(token)
    if session is None:
        raise LoginRequired()
    return session


def get_claim_list_service(
    store: RemoteStore = Depends(get_user_store),
    settings: Settings = Depends(get_settings),
) -> ClaimListService:
    return ClaimListService(store, tz=settings.DISPLAY_TIMEZONE)


def get_new_claim_service(
    store: RemoteStore = Depends(get_user_store),
    geocoder: Geocoder = Depends(get_geocoder),
    settings: Settings = Depends(get_settings),
) -> NewClaimService:
    return NewClaimService(store, geocoder, settings)


def get_claim_detail_service(
    store: RemoteStore = Depends(get_user_store),
    settings: Settings = Depends(get_settings),
) -> ClaimDetailService:
    return ClaimDetailService(store, settings)
