"""Sequencing of the login flow: initiate, then handle the callback."""

import logging
import secrets
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm.session import Session

from .credentials import SignedCredentialService
from .directory import UserDirectory
from .domain import User
from .exceptions import InvalidState, MissingCode, ProviderNotConfigured
from .identity import IdentityExchanger
from .state import generate_state_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginRedirect:
    url: str
    state: str


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: User


class LoginOrchestrator:
    """Runs the two HTTP-facing steps of the authorization-code flow.

    Shared between requests; it holds nothing that changes after start-up.
    """

    def __init__(self, exchanger: IdentityExchanger,
                 credentials: SignedCredentialService,
                 state_generator: Callable[[], str] = generate_state_token):
        self.exchanger = exchanger
        self.credentials = credentials
        self.state_generator = state_generator

    def initiate_login(self) -> LoginRedirect:
        """Make a fresh state and the provider URL that carries it."""
        if not self.exchanger.is_configured:
            raise ProviderNotConfigured('Google OAuth not configured')
        state = self.state_generator()
        return LoginRedirect(url=self.exchanger.build_authorization_url(state),
                             state=state)

    async def handle_callback(self, db: Session, cookie_state: Optional[str],
                              state: Optional[str],
                              code: Optional[str]) -> LoginResult:
        """
        Complete a login from the provider's redirect back to us.

        Steps run in order and the first failure ends the flow; nothing
        obtained before it is kept.

        Raises
        ------
        :class:`.InvalidState`
        :class:`.MissingCode`
        :class:`.ExchangeFailure`
        :class:`.ProfileFetchFailure`
        :class:`.UserPersistenceFailure`

        """
        if not cookie_state or not state \
                or not secrets.compare_digest(cookie_state.encode(), state.encode()):
            raise InvalidState('State cookie missing or does not match')
        if not code:
            raise MissingCode('No authorization code in callback')

        token = await self.exchanger.exchange_code(code)
        profile = await self.exchanger.fetch_profile(token)
        logger.debug("Provider profile received for email domain %s",
                     profile.email.rpartition('@')[2])

        directory = UserDirectory(db)
        user = await run_in_threadpool(directory.find_or_create,
                                       profile.external_id, profile.email,
                                       profile.name, profile.picture)

        jwt_token = self.credentials.issue(user.id, user.email)
        logger.info("Login succeeded for user %s", user.id)
        return LoginResult(token=jwt_token, user=user)
