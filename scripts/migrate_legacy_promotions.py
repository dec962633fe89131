import json
import sys

from pydantic import ValidationError
from sqlmodel import Session

from app.core.database import engine, create_db_and_tables
from app.models.models import Promotion
from app.schemas.promotion import PromotionRead
from app.services.legacy import from_legacy


def migrate(path: str):
    """Import a JSON export of old promotion records into the canonical table."""
    with open(path, encoding="utf-8") as f:
        records = json.load(f)

    create_db_and_tables()
    imported = 0
    with Session(engine) as session:
        for record in records:
            data = from_legacy(record)
            data.pop("id", None)
            promo = Promotion(**data)
            try:
                PromotionRead.model_validate({**promo.model_dump(), "id": 0})
            except ValidationError as e:
                print(f"Skipping '{record.get('name')}': {e}")
                continue
            session.add(promo)
            imported += 1
        session.commit()
    print(f"Migration complete: {imported}/{len(records)} promotions imported.")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python -m scripts.migrate_legacy_promotions <export.json>")
        sys.exit(1)
    migrate(sys.argv[1])
