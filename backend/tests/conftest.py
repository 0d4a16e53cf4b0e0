import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from rentfinder.core.auth import AuthService
from rentfinder.core.database import Base, get_db
from rentfinder.db.models import Property, PropertyFeature, PropertyImage, User
from rentfinder.main import app

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine"""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    return engine


@pytest.fixture(scope="function")
def test_db_session(test_engine):
    """Create a test database session"""
    Base.metadata.create_all(bind=test_engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def override_get_db(test_db_session):
    """Override the get_db dependency for testing"""
    def _override_get_db():
        try:
            yield test_db_session
        finally:
            pass
    return _override_get_db


@pytest.fixture(scope="function")
def client(override_get_db):
    """Test client bound to the in-memory database (startup hooks are not run)"""
    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(test_db_session):
    """Factory for persisted users"""
    counter = {"n": 0}

    def _make_user(role="RENTER", **overrides):
        counter["n"] += 1
        data = {
            "email": f"user{counter['n']}@example.com",
            "first_name": "Test",
            "last_name": f"User{counter['n']}",
            "role": role,
        }
        data.update(overrides)
        user = User(**data)
        test_db_session.add(user)
        test_db_session.commit()
        return user

    return _make_user


@pytest.fixture
def landlord(make_user):
    return make_user(role="LANDLORD")


@pytest.fixture
def renter(make_user):
    return make_user(role="RENTER")


@pytest.fixture
def make_property(test_db_session, landlord):
    """Factory for persisted listings; keyword arguments override the defaults"""

    def _make_property(features=(), images=(), owner=None, **overrides):
        data = {
            "title": "Sunny Apartment",
            "description": "Bright two bedroom apartment close to the park",
            "type": "APARTMENT",
            "listing_type": "RENT",
            "status": "ACTIVE",
            "price": 2000,
            "price_type": "MONTHLY",
            "address": "1 Main St",
            "city": "Springfield",
            "state": "IL",
            "zip_code": "62701",
            "bedrooms": 2,
            "bathrooms": 1,
            "sqft": 900,
        }
        data.update(overrides)
        prop = Property(owner_id=(owner or landlord).id, **data)
        prop.features = [PropertyFeature(name=name) for name in features]
        prop.images = [
            PropertyImage(url=url, is_primary=index == 0, order=index)
            for index, url in enumerate(images)
        ]
        test_db_session.add(prop)
        test_db_session.commit()
        return prop

    return _make_property


@pytest.fixture
def auth_headers():
    """Bearer headers for a persisted user"""

    def _auth_headers(user) -> dict:
        token = AuthService.create_access_token(data={"sub": user.id})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
