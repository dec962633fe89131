from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


AppliesTo = Literal["total", "products", "category", "shipping"]


# ============ Conditions ============

class MinOrderAmountCondition(BaseModel):
    type: Literal["min_order_amount"] = "min_order_amount"
    value: int = Field(ge=0)


class MinItemsCountCondition(BaseModel):
    type: Literal["min_items_count"] = "min_items_count"
    value: int = Field(ge=0)


class ProductIdsCondition(BaseModel):
    type: Literal["product_ids"] = "product_ids"
    ids: list[int] = []


class CategoryIdsCondition(BaseModel):
    type: Literal["category_ids"] = "category_ids"
    ids: list[int] = []


Condition = Annotated[
    Union[MinOrderAmountCondition, MinItemsCountCondition, ProductIdsCondition, CategoryIdsCondition],
    Field(discriminator="type"),
]


# ============ Discount config ============

class PercentageConfig(BaseModel):
    kind: Literal["percentage"] = "percentage"
    value: float = Field(ge=0, le=100)
    applies_to: AppliesTo = "total"
    max_discount_amount: int | None = Field(default=None, ge=0)
    product_ids: list[int] | None = None
    category_ids: list[int] | None = None


class FixedAmountConfig(BaseModel):
    kind: Literal["fixed_amount"] = "fixed_amount"
    value: int = Field(ge=0)
    applies_to: AppliesTo = "total"
    product_ids: list[int] | None = None
    category_ids: list[int] | None = None


class BuyXGetYConfig(BaseModel):
    kind: Literal["buy_x_get_y"] = "buy_x_get_y"
    buy_quantity: int = Field(ge=1)
    get_quantity: int = Field(ge=1)
    product_ids: list[int] | None = None
    category_ids: list[int] | None = None


class FreeShippingConfig(BaseModel):
    """Explicit free-delivery marker: no monetary amount, only the flag."""
    kind: Literal["free_shipping"] = "free_shipping"


DiscountConfig = Annotated[
    Union[PercentageConfig, FixedAmountConfig, BuyXGetYConfig, FreeShippingConfig],
    Field(discriminator="kind"),
]


# ============ Time window & visuals ============

class HoursOfDay(BaseModel):
    start: str  # "HH:MM"
    end: str  # "HH:MM"


class TimeWindow(BaseModel):
    days_of_week: list[int] | None = None  # 0 = Sunday .. 6 = Saturday
    hours_of_day: HoursOfDay | None = None


class PromotionVisuals(BaseModel):
    model_config = ConfigDict(extra="allow")

    badge_text: str | None = None
    badge_color: str | None = None
    banner_image: str | None = None
    banner_text: str | None = None
    banner_cta: str | None = None


# ============ Promotion ============

class PromotionRead(BaseModel):
    """Immutable snapshot of a promotion, as evaluated by the engine."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    name: str
    description: str | None = None
    active: bool = True
    start_date: datetime
    end_date: datetime | None = None
    priority: int = 0
    stackable: bool = True
    usage_limit_total: int | None = None
    usage_count: int = 0
    conditions: list[Condition] = []
    config: DiscountConfig
    time_window: TimeWindow | None = None
    promo_code: str | None = None
    max_uses_per_customer: int | None = None
    visuals: PromotionVisuals | None = None


class PromotionActiveUpdate(BaseModel):
    active: bool


class ProductPromotionsRead(BaseModel):
    promotions: list[PromotionRead]
    best: PromotionRead | None = None


# ============ Usage ============

class PromotionUsageCreate(BaseModel):
    promotion_id: int
    order_id: str
    customer_phone: str | None = None
    discount_amount: int = 0


class PromotionUsageRead(PromotionUsageCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    applied_at: datetime
