import pytest
from fastapi.testclient import TestClient

from blogapi.core.config import Settings
from blogapi.core.security import AuthService
from blogapi.main import create_app
from blogapi.services import PostService, PostVersionService, TagService, UserService

from factories import TEST_SECRET


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        JWT_SECRET=TEST_SECRET,
        BCRYPT_ROUNDS=4,
        _env_file=None,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    # O lifespan cria as tabelas
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db(app, client):
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def auth(settings):
    return AuthService(settings)


@pytest.fixture
def users(db, auth):
    return UserService(db, auth)


@pytest.fixture
def tags(db):
    return TagService(db)


@pytest.fixture
def posts(db, tags):
    return PostService(db, tags)


@pytest.fixture
def versions(db):
    return PostVersionService(db)
