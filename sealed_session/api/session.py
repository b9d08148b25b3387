"""
Session API endpoints for the demo service.

Login stores a small user record in the sealed session cookie, the status
endpoint reads it back, and logout destroys it. Login is rate limited.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, Field

from sealed_session.core.config import settings
from sealed_session.core.limiter import limiter
from sealed_session.core.session import SealedSession, get_sealed_session
from sealed_session.core.utils.logging_config import log_security_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/session", tags=["session"])


class LoginRequest(BaseModel):
    """Login request model."""

    username: str = Field(..., min_length=1, max_length=64, description="User name")
    bio: Optional[str] = Field(None, max_length=8192, description="Free-form profile text")


class SessionStatus(BaseModel):
    """Response model describing the current session."""

    is_logged_in: bool
    username: Optional[str] = None
    bio: Optional[str] = None
    login_count: int = 0


async def get_session(request: Request, response: Response) -> SealedSession:
    """FastAPI dependency loading the sealed session for this request."""
    return await get_sealed_session(request, response, settings.session_options())


def _status(session: SealedSession) -> SessionStatus:
    user = session.get("user") or {}
    return SessionStatus(
        is_logged_in=bool(user),
        username=user.get("username"),
        bio=user.get("bio"),
        login_count=session.get("login_count", 0),
    )


@router.get("", response_model=SessionStatus)
async def read_session(session: SealedSession = Depends(get_session)):
    """Return what the session cookie currently holds."""
    return _status(session)


@router.post("/login", response_model=SessionStatus)
@limiter.limit(settings.rate_limit_auth_endpoints)
async def login(
    request: Request,
    response: Response,
    payload: LoginRequest,
    session: SealedSession = Depends(get_session),
):
    """
    Store the user in the session cookie.

    Rate limit: settings.rate_limit_auth_endpoints per client IP.

    Args:
        request: FastAPI request object (required for rate limiting)
        response: Response the limiter writes X-RateLimit headers to
        payload: Login details
        session: Sealed session for this request

    Raises:
        CookieTooLargeError: If the profile does not fit in a cookie (HTTP 413)
    """
    session["user"] = {"username": payload.username, "bio": payload.bio}
    session["login_count"] = session.get("login_count", 0) + 1
    await session.save()

    log_security_event(
        "login",
        "User logged in",
        ip_address=request.client.host if request.client else None,
        extra_data={"username": payload.username},
    )
    return _status(session)


@router.post("/logout", response_model=SessionStatus)
async def logout(session: SealedSession = Depends(get_session)):
    """Clear the session and expire its cookie."""
    session.destroy()
    return _status(session)
