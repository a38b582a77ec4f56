"""Third-party identity login for the game manager backend."""
from logging import getLogger
from typing import Optional

from fastapi import Header, Request
from sqlalchemy.orm import Session

from .credentials import SignedCredentialService
from .db import SessionLocal
from .domain import Claims
from .exceptions import InvalidCredential


def get_db(request: Request):
    """Dependency for fastapi routes"""
    db: Session = SessionLocal(bind=request.app.extra['engine'])
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_current_claims(request: Request,
                       authorization: Optional[str] = Header(None)) -> Claims:
    """Verified claims from the ``Authorization: Bearer`` header."""
    logger = getLogger(__name__)
    if not authorization:
        raise InvalidCredential('No Authorization header')

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.debug("Authorization header is not a bearer token")
        raise InvalidCredential('Malformed Authorization header')

    credentials: SignedCredentialService = request.app.extra['credentials']
    return credentials.verify(parts[1])
