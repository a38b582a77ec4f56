"""Routes for the login flow."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response
from sqlalchemy.orm import Session

from . import get_current_claims, get_db
from .config import Settings
from .domain import Claims, LoginResponse
from .exceptions import CredentialError, LoginError
from .login import LoginOrchestrator

logger = logging.getLogger(__name__)

STATE_COOKIE_NAME = "oauth_state"
STATE_COOKIE_MAX_AGE = 600
STATE_COOKIE_PATH = "/auth"

router = APIRouter(prefix="/auth")


def error_response(exc: LoginError) -> JSONResponse:
    """Generic body and status for ``exc``; the details only go to the log."""
    if exc.status_code >= 500:
        logger.error("%s: %s", type(exc).__name__, exc, exc_info=exc)
    else:
        logger.warning("%s: %s", type(exc).__name__, exc)

    headers = None
    if isinstance(exc, CredentialError):
        headers = {"WWW-Authenticate": f'Bearer error="{exc.public_message}"'}
    return JSONResponse({"detail": exc.public_message},
                        status_code=exc.status_code, headers=headers)


async def login_error_handler(_request: Request, exc: LoginError) -> Response:
    return error_response(exc)


def _clear_state_cookie(request: Request, response: Response) -> None:
    settings: Settings = request.app.extra["settings"]
    response.delete_cookie(STATE_COOKIE_NAME, path=STATE_COOKIE_PATH,
                           secure=settings.secure_cookies, httponly=True,
                           samesite="lax")


@router.get('/login')
async def login(request: Request) -> Response:
    """Send the browser to the identity provider."""
    orchestrator: LoginOrchestrator = request.app.extra["login"]
    settings: Settings = request.app.extra["settings"]

    redirect = orchestrator.initiate_login()
    response = RedirectResponse(redirect.url,
                                status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    response.set_cookie(STATE_COOKIE_NAME, redirect.state,
                        max_age=STATE_COOKIE_MAX_AGE, path=STATE_COOKIE_PATH,
                        secure=settings.secure_cookies, httponly=True,
                        samesite="lax")
    return response


@router.get('/callback', response_model=LoginResponse)
async def oauth2_callback(request: Request,
                          code: Optional[str] = None,
                          state: Optional[str] = None,
                          db: Session = Depends(get_db)) -> Response:
    """Finish the login and hand back a signed credential."""
    orchestrator: LoginOrchestrator = request.app.extra["login"]
    cookie_state = request.cookies.get(STATE_COOKIE_NAME)

    response: Response
    try:
        result = await orchestrator.handle_callback(db, cookie_state, state, code)
    except LoginError as exc:
        response = error_response(exc)
    else:
        body = LoginResponse(token=result.token, user=result.user)
        response = JSONResponse(body.model_dump(mode="json"))

    # The state is good for one callback either way.
    _clear_state_cookie(request, response)
    return response


@router.get('/me', response_model=Claims)
async def me(claims: Claims = Depends(get_current_claims)) -> Claims:
    """Claims of the caller's credential."""
    return claims
