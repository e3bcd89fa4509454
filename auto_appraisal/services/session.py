"""Session gate and login/logout."""

from dataclasses import dataclass
from typing import Optional, Tuple

import structlog
from pydantic import ValidationError

from auto_appraisal.db.store import AuthUser, RemoteStore
from auto_appraisal.errors import StoreError
from auto_appraisal.models.claim import Profile, Role
from auto_appraisal.models.results import ActionResult
from auto_appraisal.models.views import HomeView, NavLink

log = structlog.get_logger()

ADMIN_LINKS = [
    NavLink(
        title="View All Claims",
        href="/admin/claims",
        description="View and manage all active claims in the system",
    ),
    NavLink(
        title="Create New Claim",
        href="/admin/claims/new",
        description="Start a new insurance claim with customer and vehicle details",
    ),
    NavLink(
        title="Archived Claims",
        href="/admin/claims?archived=true",
        description="View completed and archived claims for record keeping",
    ),
]

APPRAISER_LINKS = [
    NavLink(
        title="My Claims",
        href="/my-claims",
        description="View claims assigned to you and manage appraisals",
    ),
]


@dataclass(frozen=True)
class UserSession:
    user: AuthUser
    profile: Profile
    access_token: str


class SessionService:

    def __init__(self, store: RemoteStore):
        self.store = store

    async def resolve(self, access_token: Optional[str]) -> Optional[UserSession]:
        """
        Return the caller's session, or None when they must log in.

        A user without a profile row is treated exactly like a missing user.
        """
        if not access_token:
            return None
        user = await self.store.get_user(access_token)
        if user is None:
            log.info("session.no_user")
            return None
        row = await self.store.fetch_profile(user.id)
        if not row:
            log.info("session.no_profile", user_id=user.id)
            return None
        try:
            profile = Profile.model_validate(row)
        except ValidationError as e:
            log.warning("session.bad_profile", user_id=user.id, error=str(e))
            return None
        return UserSession(user=user, profile=profile, access_token=access_token)

    async def login(self, email: str, password: str) -> Tuple[ActionResult, Optional[str]]:
        try:
            session = await self.store.sign_in(email, password)
        except StoreError as e:
            log.info("session.login_failed", email=email, error=e.message)
            return ActionResult.failure(e.message), None
        log.info("session.login", user_id=session.user.id)
        return ActionResult.success(redirect_to="/", access_token=session.access_token), session.access_token

    async def logout(self, access_token: Optional[str]) -> ActionResult:
        if access_token:
            try:
                await self.store.sign_out(access_token)
            except StoreError as e:
                # the cookie is dropped regardless
                log.warning("session.logout_failed", error=e.message)
        return ActionResult.success(redirect_to="/login")

    @staticmethod
    def home(profile: Profile) -> HomeView:
        is_admin = profile.role == Role.ADMIN
        return HomeView(
            greeting=f"Welcome, {'Admin' if is_admin else 'Appraiser'}",
            role=profile.role.value,
            links=ADMIN_LINKS if is_admin else APPRAISER_LINKS,
        )
