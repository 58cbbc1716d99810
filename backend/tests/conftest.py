import os
import sys

import pytest
from fastapi.testclient import TestClient

# Ensure the backend root (containing the `sprintboard` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from sprintboard.core.config import Settings
from sprintboard.core.security import create_access_token
from sprintboard.crud import crud_user
from sprintboard.db.init_db import init_db
from sprintboard.db.session import Database
from sprintboard.main import create_app


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.sqlite'}",
        JWT_SECRET="test-secret",
        TIMEZONE="UTC",
        TEAM_TOTALS_SCOPE="all_time",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture()
def database(settings):
    database = Database(settings)
    init_db(database)
    yield database
    database.dispose()


@pytest.fixture()
def db(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture()
def app(settings):
    return create_app(settings)


@pytest.fixture()
def client(app):
    # Context manager runs the lifespan, which builds the store handle
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def app_db(client):
    session = client.app.state.database.session()
    yield session
    session.close()


@pytest.fixture()
def make_user(app_db):
    def _make(username, password="password", role="player", team=None):
        return crud_user.create_user(app_db, username, password, role=role, team=team)
    return _make


@pytest.fixture()
def auth(settings, app_db):
    """Bearer headers for an existing user."""
    def _headers(username):
        user = crud_user.get_user(app_db, username)
        token = create_access_token(settings, user.username_key, user.role, user.team)
        return {"Authorization": f"Bearer {token}"}
    return _headers
