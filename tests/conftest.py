from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session

from tiffin_api.core.config import settings
from tiffin_api.db.session import build_engine, create_db_and_tables, get_session
from tiffin_api.main import app
from tiffin_api.models import (
    Coupon,
    DiscountType,
    Seller,
    ServiceType,
    Tiffin,
    TiffinCategory,
)
from tiffin_api.services import email

WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


@pytest.fixture
def engine():
    # One shared in-memory database per test
    engine = build_engine("sqlite://", poolclass=StaticPool)
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"X-API-Key": settings.ADMIN_API_KEY}


@pytest.fixture
def sent_emails(monkeypatch):
    outbox = []

    def fake_send_email(to_email, subject, body):
        outbox.append({"to": to_email, "subject": subject, "body": body})
        return True

    monkeypatch.setattr(email, "send_email", fake_send_email)
    return outbox


@pytest.fixture
def seller(session):
    seller = Seller(name="Annapurna Kitchen", email="seller@example.com", contact_number="9876543210")
    session.add(seller)
    session.commit()
    session.refresh(seller)
    return seller


@pytest.fixture
def tiffin(session, seller):
    tiffin = Tiffin(
        seller_id=seller.id,
        title="Veg Thali",
        description="Dal, rice, roti, sabzi",
        category=TiffinCategory.VEG,
        service_type=ServiceType.TIFFIN,
        price=100.0,
        trial_price=80.0,
        monthly_price=2500.0,
        available_days=WEEKDAYS,
        slots=["12:00-13:00"],
        add_ons=[
            {"name": "Extra Roti", "description": "", "price": 10.0, "available": True},
            {"name": "Raita", "description": "", "price": 25.0, "available": True},
            {"name": "Kheer", "description": "", "price": 40.0, "available": False},
        ],
        weekly_customizations=[
            {"name": "Paneer Special", "description": "", "price": 20.0,
             "days": ["Mon", "Tue", "Wed"], "available": True},
        ],
    )
    session.add(tiffin)
    session.commit()
    session.refresh(tiffin)
    return tiffin


@pytest.fixture
def make_coupon(session):
    def _make(**overrides):
        now = datetime.utcnow()
        data = {
            "code": "SAVE10",
            "description": "10% off",
            "discount_type": DiscountType.PERCENTAGE,
            "discount_value": 10.0,
            "min_order_amount": 0.0,
            "max_discount_amount": None,
            "valid_from": now - timedelta(days=1),
            "valid_until": now + timedelta(days=30),
            "usage_limit": 100,
            "used_count": 0,
            "is_active": True,
        }
        data.update(overrides)
        coupon = Coupon(**data)
        session.add(coupon)
        session.commit()
        session.refresh(coupon)
        return coupon

    return _make
