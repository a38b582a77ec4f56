"""Special pytest fixture configuration file.

This file automatically provides all fixtures defined in it to all
pytest tests in this directory and sub directories.
"""
import pytest
from fastapi.testclient import TestClient
from pydantic import SecretStr

from gamemanager_oauth2.config import Settings
from gamemanager_oauth2.db import SessionLocal, create_db_engine, create_tables
from gamemanager_oauth2.main import create_app
from gamemanager_oauth2.tests.util import CLIENT_ID, CLIENT_SECRET, \
    REDIRECT_URL, SECRET, FakeGoogle


@pytest.fixture
def secret():
    return SECRET


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'pytest.db'}"


@pytest.fixture
def engine(db_url):
    engine = create_db_engine(db_url)
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = SessionLocal(bind=engine)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def clean_environ(monkeypatch):
    """Keep the developer's environment out of the settings under test."""
    for name in Settings.model_fields:
        monkeypatch.delenv(name.upper(), raising=False)


@pytest.fixture
def settings(db_url, secret):
    return Settings(
        _env_file=None,
        database_url=db_url,
        jwt_secret=SecretStr(secret),
        google_client_id=CLIENT_ID,
        google_client_secret=SecretStr(CLIENT_SECRET),
        google_redirect_url=REDIRECT_URL,
    )


@pytest.fixture
def google():
    return FakeGoogle()


@pytest.fixture
def client(settings, google):
    """Returns a test client for the app, talking to a fake Google."""
    app = create_app(settings, exchanger=google.exchanger())
    return TestClient(app)
