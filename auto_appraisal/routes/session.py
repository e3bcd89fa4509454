from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from auto_appraisal.config import Settings
from auto_appraisal.deps import access_token, get_session_service, get_settings, require_session
from auto_appraisal.models.views import HomeView, LoginPage
from auto_appraisal.routes.responses import action_response
from auto_appraisal.services.session import SessionService, UserSession

router = APIRouter(tags=["session"])


class Credentials(BaseModel):
    email: str = ""
    password: str = ""


@router.get("/login", response_model=LoginPage)
async def login_page() -> LoginPage:
    return LoginPage()


@router.post("/login")
async def login(
    credentials: Credentials,
    sessions: SessionService = Depends(get_session_service),
    settings: Settings = Depends(get_settings),
):
    """Sign in; the access token is set as an HTTP-only cookie and echoed in the body"""
    result, token = await sessions.login(credentials.email, credentials.password)
    if not result.ok:
        return action_response(result, error_status=401)
    response = action_response(result)
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        httponly=True,
        samesite="lax",
    )
    return response


@router.post("/logout")
async def logout(
    token: Optional[str] = Depends(access_token),
    sessions: SessionService = Depends(get_session_service),
    settings: Settings = Depends(get_settings),
):
    await sessions.logout(token)
    response = RedirectResponse("/login", status_code=303)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response


@router.get("/", response_model=HomeView)
async def home(session: UserSession = Depends(require_session)) -> HomeView:
    return SessionService.home(session.profile)
