"""Find-or-create reconciliation of provider identities with local users.

Concurrent first logins for the same person race on the insert. The unique
constraints on ``users`` decide the winner; a loser recovers by reading the
row that beat it. No in-process locking is involved.
"""

import logging
from typing import Optional, Union

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.session import Session

from .domain import User
from .exceptions import UserPersistenceFailure
from .models import DBUser, EMAIL_CONSTRAINT, GOOGLE_ID_CONSTRAINT

logger = logging.getLogger(__name__)

EMAIL = 'email'
GOOGLE_ID = 'google_id'

_CONSTRAINT_COLUMNS = {
    EMAIL_CONSTRAINT: EMAIL,
    GOOGLE_ID_CONSTRAINT: GOOGLE_ID,
}


class UniqueViolation(RuntimeError):
    """An insert collided with an existing row on a unique column."""

    def __init__(self, column: str):
        super().__init__(f'Unique constraint violated on {column}')
        self.column = column


def _constraint_name(error: IntegrityError) -> Optional[str]:
    """Constraint name reported by the driver, if it reports one.

    psycopg exposes it as ``diag.constraint_name``; SQLite has no equivalent.
    """
    diag = getattr(error.orig, 'diag', None)
    return getattr(diag, 'constraint_name', None)


class UserDirectory:
    """Maps provider identities to rows in ``users``."""

    def __init__(self, session: Session):
        self.session = session

    def find_or_create(self, external_id: str, email: str,
                       name: Optional[str] = None,
                       picture: Optional[str] = None) -> User:
        """
        Get the user for a provider identity, creating it on first login.

        Existing rows are returned as they are; a changed name or picture at
        the provider does not rewrite them.

        Parameters
        ----------
        external_id : str
            Provider subject id.
        email : str
        name : str or None
        picture : str or None
            Avatar URL.

        Returns
        -------
        :class:`.User`

        Raises
        ------
        :class:`.UserPersistenceFailure`
            The row could neither be found nor created.

        """
        db_user = self._lookup(DBUser.google_id, external_id)
        if db_user is not None:
            return User.model_validate(db_user)

        try:
            db_user = self._insert(external_id, email, name, picture)
        except UniqueViolation as violation:
            if violation.column == EMAIL:
                logger.warning("Email already registered to another provider id; "
                               "using the existing user")
                db_user = self._lookup(DBUser.email, email)
            else:
                logger.info("Lost insert race for provider id; using the winner's row")
                db_user = self._lookup(DBUser.google_id, external_id)
            if db_user is None:
                raise UserPersistenceFailure(
                    f'No row found after {violation.column} collision'
                ) from violation
            return User.model_validate(db_user)

        logger.info("Created user %s", db_user.id)
        return User.model_validate(db_user)

    def _lookup(self, column, value) -> Optional[DBUser]:
        try:
            return self.session.query(DBUser).filter(column == value).first()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise UserPersistenceFailure(f'Lookup by {column.key} failed') from e

    def _insert(self, external_id: str, email: str, name: Optional[str],
                picture: Optional[str]) -> DBUser:
        db_user = DBUser(google_id=external_id, email=email, name=name,
                         picture=picture)
        self.session.add(db_user)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise self._classify(e, external_id, email) from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise UserPersistenceFailure('Could not create user') from e
        self.session.refresh(db_user)
        return db_user

    def _classify(self, error: IntegrityError, external_id: str,
                  email: str) -> Union[UniqueViolation, UserPersistenceFailure]:
        """Work out which unique column an insert collided on."""
        column = _CONSTRAINT_COLUMNS.get(_constraint_name(error))
        if column is not None:
            return UniqueViolation(column)

        # No structured diagnostics: find the conflicting row instead.
        if self._lookup(DBUser.google_id, external_id) is not None:
            return UniqueViolation(GOOGLE_ID)
        if self._lookup(DBUser.email, email) is not None:
            return UniqueViolation(EMAIL)
        return UserPersistenceFailure('Could not create user')
