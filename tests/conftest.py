import pytest
from starlette.testclient import TestClient

from command_api import database
from command_api.config import Settings
from command_api.mcp_server import build_app
from command_api.service import CommandService


@pytest.fixture(autouse=True)
def fresh_database():
    """Give every test its own empty in-memory database."""
    database.configure("sqlite://")
    database.init_db()
    yield
    database.engine.dispose()


@pytest.fixture
def session():
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def service(session) -> CommandService:
    return CommandService(session, "UnitTest")


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, environment="UnitTest")


@pytest.fixture
def client(settings) -> TestClient:
    return TestClient(build_app(settings))


@pytest.fixture
def sample() -> dict:
    return {
        "howTo": "Do Somethting",
        "platform": "Some Platform",
        "commandLine": "Some Command",
    }
