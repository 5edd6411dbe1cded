import os

os.environ.update({
    "DATABASE_URL": "sqlite://",
    "ANON_KEY": "test-anon-key",
    "SERVICE_ROLE_KEY": "test-service-key",
    "REQUIRE_API_KEY": "true",
})
os.environ.pop("REDIS_HOST", None)

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from main import app
from dependencies import get_session
from models import Producer, Product

ANON_KEY = "test-anon-key"
SERVICE_KEY = "test-service-key"


@pytest.fixture
def test_db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def db_session(test_db_engine):
    with Session(test_db_engine) as session:
        yield session


@pytest.fixture
def client(test_db_engine):
    def get_session_override():
        with Session(test_db_engine) as session:
            yield session

    app.dependency_overrides[get_session] = get_session_override
    with TestClient(app, headers={"apikey": ANON_KEY}) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def producer(db_session):
    producer = Producer(name="Cantina Colli Alti")
    db_session.add(producer)
    db_session.commit()
    db_session.refresh(producer)
    return producer


@pytest.fixture
def make_products(db_session, producer):
    """Create ``count`` products, the last one being the newest"""
    def factory(count: int, **body_overrides) -> list[Product]:
        base = datetime(2025, 1, 1, tzinfo=timezone.utc)
        products = []
        for i in range(count):
            product = Product(
                uid=f"experience-{i}",
                title=f"Experience {i}",
                producer_id=producer.id,
                body={
                    "description": f"Description {i}",
                    "price": 10 + i,
                    "currency": "€",
                    "imageUrl": f"/images/{i}.jpg",
                    "checkoutUrl": f"https://checkout.example.com/{i}",
                    **body_overrides,
                },
                created_at=base + timedelta(hours=i),
            )
            products.append(product)
        db_session.add_all(products)
        db_session.commit()
        for product in products:
            db_session.refresh(product)
        return products
    return factory
