import sys
import os

# Add project root to Python path
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT_DIR)

# -----------------------------------------
# TEST SETTINGS (must be set before the app is imported)
# -----------------------------------------
TEST_DATABASE_URL = "sqlite:///./test.db"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["SECRET_KEY"] = "test-access-secret"
os.environ["REFRESH_SECRET_KEY"] = "test-refresh-secret"
os.environ["ALGORITHM"] = "HS256"
os.environ["REDIS_URL"] = ""
os.environ["OTP_EXPOSE_CODE_FOR_TESTING"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from main import app

from api.deps import get_otp_cache
from db import get_db
from models import Base
from utils.cache import InMemoryOtpCache


# -----------------------------------------
# Create test engine + session
# -----------------------------------------
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


# -----------------------------------------
# Override DB dependency in FastAPI
# -----------------------------------------
def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db


# -----------------------------------------
# PYTEST GLOBAL SETUP
# -----------------------------------------
@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create tables before tests start."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


# -----------------------------------------
# Fake clock for expiry tests
# -----------------------------------------
class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


# -----------------------------------------
# Fresh OTP cache per test, shared with the app
# -----------------------------------------
@pytest.fixture(autouse=True)
def otp_cache(clock):
    cache = InMemoryOtpCache(clock=clock)
    app.dependency_overrides[get_otp_cache] = lambda: cache
    yield cache
    app.dependency_overrides.pop(get_otp_cache, None)


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# -----------------------------------------
# Test Client
# -----------------------------------------
@pytest.fixture(scope="session")
def client():
    return TestClient(app)
