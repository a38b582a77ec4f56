"""Configuration for the login service.

Everything is read once, at start-up, from the process environment and a
local ``.env`` file into an immutable :class:`Settings`. Real environment
variables win over the file. The application factory takes a ``Settings`` so
that tests and embedding code never need to touch ``os.environ``.
"""

import logging
from typing import Annotated, Any, List, Optional

from pydantic import SecretStr, ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = 'your-secret-key-change-in-production-min-32-chars'
"""Development placeholder. Refused when ``ENV`` is ``production``."""

DEFAULT_REDIRECT_URL = 'http://localhost:8080/auth/callback'

SERVICE_NAME = 'game-manager'


class Settings(BaseSettings):
    """Process configuration. Read only after construction."""

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        env_ignore_empty=True,
        case_sensitive=False,
        extra='ignore',
        frozen=True,
    )

    port: int = 8080
    env: str = 'development'

    database_url: str = ''
    """Composed from the ``DB_*`` values when not given."""

    db_host: str = 'localhost'
    db_port: str = '5432'
    db_user: str = 'postgres'
    db_password: SecretStr = SecretStr('postgres')
    db_name: str = 'gamemanager'
    db_sslmode: str = 'disable'

    jwt_secret: SecretStr = SecretStr(DEFAULT_JWT_SECRET)
    jwt_expiry_hours: int = 24

    google_client_id: str = ''
    google_client_secret: SecretStr = SecretStr('')
    google_redirect_url: str = DEFAULT_REDIRECT_URL

    cors_origins: Annotated[List[str], NoDecode] = []
    log_level: str = 'INFO'

    @field_validator('port', 'jwt_expiry_hours', mode='before')
    @classmethod
    def _int_or_default(cls, value: Any, info: ValidationInfo) -> Any:
        default = cls.model_fields[info.field_name].default
        if value is None or value == '':
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning("%s is not an integer (%r), using %s",
                           info.field_name.upper(), value, default)
            return default

    @field_validator('cors_origins', mode='before')
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(',') if origin.strip()]
        return value

    @model_validator(mode='before')
    @classmethod
    def _compose_database_url(cls, data: Any) -> Any:
        if not isinstance(data, dict) or data.get('database_url'):
            return data
        password = data.get('db_password') or 'postgres'
        if isinstance(password, SecretStr):
            password = password.get_secret_value()
        url = 'postgresql+psycopg2://{user}:{password}@{host}:{port}/{name}?sslmode={sslmode}'.format(
            user=data.get('db_user') or 'postgres',
            password=password,
            host=data.get('db_host') or 'localhost',
            port=data.get('db_port') or '5432',
            name=data.get('db_name') or 'gamemanager',
            sslmode=data.get('db_sslmode') or 'disable',
        )
        return {**data, 'database_url': url}

    @property
    def is_production(self) -> bool:
        return self.env == 'production'

    @property
    def secure_cookies(self) -> bool:
        """State cookie gets the ``Secure`` flag only in production."""
        return self.is_production


def load_settings(env_file: Optional[str] = '.env') -> Settings:
    """Build :class:`Settings` from the environment and ``env_file``.

    Pass ``env_file=None`` to read the environment only.
    """
    return Settings(_env_file=env_file)
