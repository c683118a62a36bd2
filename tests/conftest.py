"""
Shared fixtures for CarLeads tests

The application runs against an in-memory SQLite database (one shared
connection) that is rebuilt for every test.
"""
import os

# Must be set before any application module reads its settings
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENABLE_PREVIEW_FETCH"] = "false"
os.environ["LOG_FORMAT"] = "text"
os.environ["LOG_LEVEL"] = "WARNING"

import uuid  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import database.models  # noqa: E402,F401
from account_management.auth_service import AuthService  # noqa: E402
from account_management.repository import UserRepository  # noqa: E402
from core.config import settings  # noqa: E402
from database.base import Base  # noqa: E402
from database.models import VA, UserRole  # noqa: E402
from database.session import SessionLocal, engine  # noqa: E402
from lead_explorer.repository import LeadRepository  # noqa: E402
from main import app  # noqa: E402

DEFAULT_PASSWORD = "Password123!"


@pytest.fixture(autouse=True)
def _database():
    """Fresh schema for every test"""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def make_user(db_session):
    """Factory creating active users with a known password"""

    def _make_user(role=UserRole.VA, email=None, password=DEFAULT_PASSWORD):
        email = email or f"{role.value.lower()}-{uuid.uuid4().hex[:8]}@example.com"
        return UserRepository(db_session).create_user(email, role, password=password)

    return _make_user


@pytest.fixture
def make_va(db_session, make_user):
    """Factory creating a VA record, with a login unless with_user is False"""

    def _make_va(name="Alice", commission_percentage=None, with_user=True):
        user = make_user(UserRole.VA) if with_user else None
        va = VA(
            name=name,
            user_id=user.id if user else None,
            commission_percentage=commission_percentage,
        )
        db_session.add(va)
        db_session.commit()
        db_session.refresh(va)
        return va

    return _make_va


@pytest.fixture
def lead_data():
    """Factory for lead payloads with a unique listing URL"""

    def _lead_data(**overrides):
        data = {
            "make": "Toyota",
            "model": "Corolla",
            "year": 2018,
            "mileage": 85000,
            "asking_price": Decimal("10000.00"),
            "estimated_sale_price": Decimal("12000.00"),
            "expenses_estimate": Decimal("500.00"),
            "source_url": f"https://cars.example.com/listing/{uuid.uuid4().hex[:12]}",
            "seller_contact": "555-0100",
            "location": "Austin, TX",
        }
        data.update(overrides)
        return data

    return _lead_data


@pytest.fixture
def make_lead(db_session, lead_data):
    """Factory inserting leads directly through the repository"""

    def _make_lead(user_id=None, **overrides):
        return LeadRepository(db_session).create_lead(lead_data(**overrides), user_id)

    return _make_lead


@pytest.fixture
def superadmin(make_user):
    return make_user(UserRole.SUPERADMIN, email="admin@example.com")


@pytest.fixture
def manager(make_user):
    return make_user(UserRole.MANAGER, email="manager@example.com")


@pytest.fixture
def va(make_va):
    return make_va(name="Alice")


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def login_client(user):
    """TestClient carrying a session cookie for the user"""
    test_client = TestClient(app)
    test_client.cookies.set(settings.session_cookie_name, AuthService.generate_session_token(user))
    return test_client


@pytest.fixture
def superadmin_client(superadmin):
    with login_client(superadmin) as test_client:
        yield test_client


@pytest.fixture
def manager_client(manager):
    with login_client(manager) as test_client:
        yield test_client


@pytest.fixture
def va_client(va):
    with login_client(va.user) as test_client:
        yield test_client
