"""
Staff sign-in through Google OAuth.

Only verified addresses in the configured email domain are admitted. The
resulting principal lives in the signed session cookie.
"""

import logging
import secrets
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from trainingdesk_backend.api.dependencies import get_app_settings, get_oauth_client
from trainingdesk_backend.exceptions import (
    AccessDeniedException,
    BadRequestException,
    InvalidOAuthStateException,
    OAuthExchangeException,
)
from trainingdesk_backend.oauth import GoogleOAuthClient, OAuthError
from trainingdesk_backend.permissions.auth import get_current_principal
from trainingdesk_backend.permissions.policy import is_staff_login_allowed
from trainingdesk_backend.permissions.principal import (
    SESSION_STATE_KEY,
    clear_session,
    store_principal,
)
from trainingdesk_backend.settings import BackendSettings
from trainingdesk_types.auth import AuthProviderInfo, StaffPrincipal

logger = logging.getLogger(__name__)

# Initialize rate limiter for this router
limiter = Limiter(key_func=get_remote_address)

auth_router = APIRouter()


def callback_url(request: Request, settings: BackendSettings) -> str:
    if settings.public_base_url:
        return f"{settings.public_base_url.rstrip('/')}/auth/google/callback"
    return str(request.url_for("google_callback"))


@auth_router.get("/providers", response_model=List[AuthProviderInfo])
async def list_providers(
    settings: Annotated[BackendSettings, Depends(get_app_settings)],
) -> List[AuthProviderInfo]:
    return [
        AuthProviderInfo(
            id="google",
            name="Google",
            enabled=settings.oauth_enabled,
            login_url="/auth/google/login",
        )
    ]


@auth_router.get("/google/login")
@limiter.limit("20/minute")
async def google_login(
    request: Request,
    settings: Annotated[BackendSettings, Depends(get_app_settings)],
    oauth: Annotated[GoogleOAuthClient, Depends(get_oauth_client)],
) -> RedirectResponse:
    """
    Start the Google sign-in.

    Stores a fresh CSRF state in the session and redirects to Google.
    """
    state = secrets.token_urlsafe(32)
    request.session[SESSION_STATE_KEY] = state

    login_url = oauth.authorization_url(
        redirect_uri=callback_url(request, settings),
        state=state,
        hosted_domain=settings.allowed_email_domain,
    )
    return RedirectResponse(url=login_url, status_code=302)


@auth_router.get("/google/callback", name="google_callback")
async def google_callback(
    request: Request,
    settings: Annotated[BackendSettings, Depends(get_app_settings)],
    oauth: Annotated[GoogleOAuthClient, Depends(get_oauth_client)],
    code: Optional[str] = Query(None, description="Authorization code"),
    state: Optional[str] = Query(None, description="State parameter"),
    error: Optional[str] = Query(None, description="Error reported by the provider"),
) -> RedirectResponse:
    """
    Finish the Google sign-in.

    Validates the state, exchanges the code, applies the email domain policy
    and stores the staff principal in the session.
    """
    # state is single use
    expected_state = request.session.pop(SESSION_STATE_KEY, None)
    if not state or not expected_state or not secrets.compare_digest(state, expected_state):
        raise InvalidOAuthStateException()

    if error:
        raise OAuthExchangeException(detail=f"Sign-in was not completed: {error}")
    if not code:
        raise BadRequestException(detail="Missing authorization code")

    try:
        userinfo = await oauth.authenticate(code, callback_url(request, settings))
    except OAuthError as e:
        logger.warning(f"Google sign-in failed: {e}")
        raise OAuthExchangeException(context={"reason": e.message})

    if not is_staff_login_allowed(userinfo.email, userinfo.email_verified, settings.allowed_email_domain):
        logger.warning(f"Rejected sign-in for {userinfo.email!r} (verified={userinfo.email_verified})")
        raise AccessDeniedException(user_email=userinfo.email)

    principal = StaffPrincipal(
        email=userinfo.email,
        name=userinfo.name,
        picture=userinfo.picture,
        provider="google",
    )
    store_principal(request, principal)
    logger.info(f"Staff sign-in: {principal.email}")

    return RedirectResponse(url=settings.post_login_redirect, status_code=302)


@auth_router.get("/session", response_model=StaffPrincipal)
async def current_session(
    principal: Annotated[StaffPrincipal, Depends(get_current_principal)],
) -> StaffPrincipal:
    return principal


@auth_router.post("/logout")
async def logout(request: Request) -> dict:
    clear_session(request)
    return {"message": "Signed out"}
