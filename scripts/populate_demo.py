from datetime import datetime, timedelta, timezone

from sqlmodel import Session, select

from app.core.database import engine, create_db_and_tables
from app.models.models import Promotion


DEMO_PROMOTIONS = [
    {
        "name": "10% off orders over 40000",
        "priority": 10,
        "conditions": [{"type": "min_order_amount", "value": 40000}],
        "config": {"kind": "percentage", "value": 10, "applies_to": "total"},
        "visuals": {"badge_text": "-10%", "badge_color": "#e11d48"},
    },
    {
        "name": "SAVE5000",
        "priority": 5,
        "promo_code": "SAVE5000",
        "config": {"kind": "fixed_amount", "value": 5000, "applies_to": "total"},
        "max_uses_per_customer": 1,
    },
    {
        "name": "Drinks happy hour 2+1",
        "priority": 20,
        "conditions": [{"type": "category_ids", "ids": [3]}],
        "config": {"kind": "buy_x_get_y", "buy_quantity": 2, "get_quantity": 1, "category_ids": [3]},
        "time_window": {"days_of_week": [1, 2, 3, 4, 5], "hours_of_day": {"start": "17:00", "end": "19:00"}},
        "visuals": {"badge_text": "2+1"},
    },
    {
        "name": "Free delivery on weekends",
        "priority": 1,
        "config": {"kind": "free_shipping"},
        "time_window": {"days_of_week": [0, 6]},
    },
]


def create_demo_data():
    create_db_and_tables()
    with Session(engine) as session:
        start = datetime.now(timezone.utc) - timedelta(days=1)
        for data in DEMO_PROMOTIONS:
            exists = session.exec(select(Promotion).where(Promotion.name == data["name"])).first()
            if exists:
                print(f"Already exists: {data['name']}")
                continue
            session.add(Promotion(start_date=start, **data))
            print(f"Created: {data['name']}")
        session.commit()


if __name__ == "__main__":
    create_demo_data()
