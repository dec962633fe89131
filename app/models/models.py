from typing import Any
from datetime import datetime, timezone
from sqlmodel import JSON, Column, Field, Relationship, SQLModel, UniqueConstraint


class Promotion(SQLModel, table=True):
    __tablename__ = "promotions"

    id: int | None = Field(default=None, primary_key=True)
    name: str
    description: str | None = None
    active: bool = True
    start_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    end_date: datetime | None = None
    priority: int = Field(default=0, index=True)
    stackable: bool = True
    usage_limit_total: int | None = None
    usage_count: int = 0
    promo_code: str | None = Field(default=None, index=True)
    max_uses_per_customer: int | None = None
    conditions: list[dict] = Field(sa_column=Column[Any](JSON), default=[])
    # Formato: [{"type": "min_order_amount", "value": 40000}, {"type": "product_ids", "ids": [3, 7]}]
    config: dict = Field(sa_column=Column[Any](JSON), default={})
    # Formato: {"kind": "percentage", "value": 10, "applies_to": "total"}
    time_window: dict | None = Field(sa_column=Column[Any](JSON), default=None)
    visuals: dict | None = Field(sa_column=Column[Any](JSON), default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    usages: list["PromotionUsage"] = Relationship(back_populates="promotion")


class PromotionUsage(SQLModel, table=True):
    __tablename__ = "promotion_usages"
    __table_args__ = (UniqueConstraint("promotion_id", "order_id"),)

    id: int | None = Field(default=None, primary_key=True)
    promotion_id: int = Field(foreign_key="promotions.id", index=True)
    order_id: str = Field(index=True)
    customer_phone: str | None = Field(default=None, index=True)
    discount_amount: int = 0
    applied_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    promotion: Promotion | None = Relationship(back_populates="usages")
