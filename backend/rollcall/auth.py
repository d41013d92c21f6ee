"""Authentication routes: cookie-based login, logout and whoami."""
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings
from .dependencies import SESSION_COOKIE, get_app_settings, get_current_user, get_db_session
from .schemas import CurrentUser, LoginRequest, MessageResponse, UserEnvelope
from .services import users as user_service
from .tokens import issue_token

router = APIRouter(prefix="/auth", tags=["auth"])


def _cookie_is_secure(request: Request, settings: Settings) -> bool:
    return settings.cookie_secure or request.url.scheme == "https"


@router.post("/login", response_model=UserEnvelope)
async def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> UserEnvelope:
    """Check credentials and set the session cookie."""

    user = await user_service.authenticate(session, payload.username, payload.password)
    token = issue_token(
        {"userId": user.id, "role": user.role.value},
        settings.secret_key,
        settings.session_ttl_seconds,
    )
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        max_age=settings.session_ttl_seconds,
        path="/",
        secure=_cookie_is_secure(request, settings),
        httponly=True,
        samesite="lax",
    )
    return UserEnvelope(user=CurrentUser.model_validate(user))


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_app_settings),
) -> MessageResponse:
    """Clear the session cookie."""

    response.delete_cookie(
        key=SESSION_COOKIE,
        path="/",
        secure=_cookie_is_secure(request, settings),
        httponly=True,
        samesite="lax",
    )
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserEnvelope)
async def me(current_user: CurrentUser = Depends(get_current_user)) -> UserEnvelope:
    """Return the caller behind the session cookie."""

    return UserEnvelope(user=current_user)
