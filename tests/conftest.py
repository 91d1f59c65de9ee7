from decimal import Decimal
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from salon import config, crud, models, schemas
from salon.db import Base
from salon.main import app, get_db


@pytest.fixture(scope="function")
def db_session() -> Generator:
    # Use in-memory SQLite with a single connection
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def upload_dir(tmp_path):
    # Each test writes blobs into its own directory
    previous = config.get_settings()
    path = tmp_path / "uploads"
    config.set_settings(upload_dir=str(path))
    yield path
    config.set_settings(**previous._asdict())


@pytest.fixture(scope="function")
def client(db_session):
    # Override dependency to use the same session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass
    app.dependency_overrides[get_db] = override_get_db
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_product(db_session):
    def _make(name="Argan Oil", price="500.00", is_active=True, category="Hair Care"):
        product = models.Product(name=name, price=Decimal(price), is_active=is_active, category=category)
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product
    return _make


@pytest.fixture
def make_service(db_session):
    def _make(name="Classic Facial", category="Skin", price="1200.00", is_active=True):
        service = models.Service(name=name, category=category, price=Decimal(price), is_active=is_active)
        db_session.add(service)
        db_session.commit()
        db_session.refresh(service)
        return service
    return _make


@pytest.fixture
def user(db_session):
    return crud.create_user(
        db_session, schemas.SignupIn(name="Jay", email="jay@example.com", phone="999", password="secret")
    )


@pytest.fixture
def customer_client(client):
    r = client.post(
        "/api/users/signup",
        json={"name": "Jay", "email": "jay@example.com", "phone": "999", "password": "secret"},
    )
    assert r.status_code == 200
    client.user_id = r.json()["userId"]
    return client


@pytest.fixture
def admin_client(client, db_session):
    crud.create_admin(db_session, "admin", "adminpass")
    r = client.post("/api/admin/login", json={"username": "admin", "password": "adminpass"})
    assert r.status_code == 200
    return client
