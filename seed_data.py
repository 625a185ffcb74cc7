from datetime import datetime, timedelta
from sqlmodel import Session, select
from tiffin_api.db.session import engine, create_db_and_tables
from tiffin_api.models import DiscountType, MealType, Seller, ServiceType, Tiffin, TiffinCategory
from tiffin_api.services.coupon import CouponService

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

def seed_demo_data(session: Session) -> bool:
    """Create a demo seller, two listings and a welcome coupon. Returns False if data already exists."""
    existing = session.exec(select(Tiffin)).all()
    if existing:
        print(f"Database already contains {len(existing)} tiffins. Skipping seed.")
        return False

    seller = Seller(
        name="Annapurna Home Kitchen",
        email="annapurna@example.com",
        contact_number="9876543210",
        business_address="12 MG Road, Pune",
    )
    session.add(seller)
    session.commit()
    session.refresh(seller)

    session.add(Tiffin(
        seller_id=seller.id,
        title="Ghar Ka Khana Thali",
        description="Two sabzis, dal, rice, four rotis and salad.",
        category=TiffinCategory.VEG,
        service_type=ServiceType.TIFFIN,
        meal_type=MealType.LUNCH,
        price=120.0,
        trial_price=99.0,
        monthly_price=2800.0,
        available_days=WEEKDAYS,
        slots=["12:00-13:00", "13:00-14:00"],
        add_ons=[
            {"name": "Extra Roti", "description": "Two phulkas", "price": 15.0, "available": True},
            {"name": "Sweet of the Day", "description": "Gulab jamun or kheer", "price": 30.0, "available": True},
        ],
        weekly_customizations=[
            {"name": "Paneer Special", "description": "Paneer sabzi instead of seasonal",
             "price": 25.0, "days": ["Wednesday", "Saturday"], "available": True},
            {"name": "Brown Rice", "description": "Swap white rice for brown",
             "price": 10.0, "days": WEEKDAYS, "available": True},
        ],
    ))
    session.add(Tiffin(
        seller_id=seller.id,
        title="Evening Snack Box",
        description="Poha or upma with chai.",
        category=TiffinCategory.JAIN,
        service_type=ServiceType.MEAL,
        meal_type=MealType.BREAKFAST,
        price=60.0,
        available_days=WEEKDAYS,
        slots=["17:00-18:00"],
    ))
    session.commit()

    now = datetime.utcnow()
    CouponService(session).create_coupon({
        "code": "welcome50",
        "description": "₹50 off your first booking",
        "discount_type": DiscountType.FIXED,
        "discount_value": 50.0,
        "min_order_amount": 200.0,
        "valid_from": now,
        "valid_until": now + timedelta(days=90),
        "usage_limit": 500,
    })
    return True

if __name__ == "__main__":
    print("Creating database and tables...")
    create_db_and_tables()
    with Session(engine) as session:
        if seed_demo_data(session):
            print("Seeded demo seller, tiffins and WELCOME50 coupon!")
