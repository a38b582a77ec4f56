"""Issue and verify signed session credentials (HS256 JWT)."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

import jwt
from pydantic import ValidationError

from .domain import Claims
from .exceptions import ExpiredCredential, InvalidCredential

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
REQUIRED_CLAIMS = ["user_id", "email", "iat", "exp"]


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class SignedCredentialService:
    """Stateless session credentials.

    The secret and validity are fixed at construction. Verification needs
    nothing but the token and the secret.
    """

    def __init__(self, secret: str, validity: timedelta,
                 clock: Callable[[], datetime] = _utcnow):
        if not secret:
            raise ValueError("A signing secret is required")
        self._secret = secret
        self._validity = validity
        self._clock = clock

    @property
    def validity(self) -> timedelta:
        return self._validity

    def issue(self, user_id: int, email: str) -> str:
        """Sign a credential for ``user_id`` valid from now for ``validity``."""
        now = self._clock()
        claims = Claims(
            user_id=user_id,
            email=email,
            iat=int(now.timestamp()),
            exp=int((now + self._validity).timestamp()),
        )
        return jwt.encode(claims.model_dump(), self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> Claims:
        """
        Check the signature and expiry of ``token`` and return its claims.

        Raises
        ------
        :class:`.InvalidCredential`
            Malformed token, algorithm other than HS256, bad signature, or
            missing claims.
        :class:`.ExpiredCredential`
            The token is otherwise valid but has expired.

        """
        try:
            header = jwt.get_unverified_header(token)
        except jwt.InvalidTokenError as e:
            raise InvalidCredential('Not a valid token') from e
        # Checked on its own so that "none" or an asymmetric algorithm never
        # reaches signature verification.
        if header.get("alg") != ALGORITHM:
            raise InvalidCredential(f'Unexpected algorithm {header.get("alg")!r}')

        try:
            # Time claims are checked below against our own clock, not PyJWT's.
            data: dict = jwt.decode(token, self._secret, algorithms=[ALGORITHM],
                                    options={"require": REQUIRED_CLAIMS,
                                             "verify_exp": False,
                                             "verify_iat": False})
        except jwt.InvalidTokenError as e:
            raise InvalidCredential('Not a valid token') from e

        try:
            claims = Claims.model_validate(data)
        except ValidationError as e:
            raise InvalidCredential('Token claims are malformed') from e

        if claims.exp <= int(self._clock().timestamp()):
            raise ExpiredCredential('Token has expired')
        return claims
