"""Core data structures for the login flow."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class User(BaseModel):
    """A local user as returned to clients.

    The provider subject id is not a field here, so it never reaches a
    response body.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: Optional[str] = None
    picture: Optional[str] = None
    created_at: datetime


class Claims(BaseModel):
    """Claims carried by a session credential."""

    user_id: int
    email: str
    iat: int
    """Issued at, epoch seconds."""

    exp: int
    """Expires at, epoch seconds."""


class LoginResponse(BaseModel):
    token: str
    user: User


class ProviderToken(BaseModel):
    """The part of the provider's token response we use."""

    access_token: str = Field(min_length=1)
    token_type: str = 'Bearer'
    expires_in: Optional[int] = None


class ProviderProfile(BaseModel):
    """Userinfo payload from the identity provider.

    ``id`` and ``email`` are required; a profile without them is rejected
    rather than half-filled. Extra fields sent by the provider are ignored.
    """

    model_config = ConfigDict(extra='ignore')

    id: str = Field(min_length=1)
    email: str = Field(min_length=1)
    name: Optional[str] = None
    picture: Optional[str] = None

    @field_validator('id', 'email')
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError('must not be blank')
        return value

    @property
    def external_id(self) -> str:
        return self.id
