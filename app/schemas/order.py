from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class LineItem(BaseModel):
    product_id: int
    category_id: int | None = None
    unit_price: int = Field(ge=0)
    quantity: int = Field(gt=0)

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity


class OrderDraft(BaseModel):
    """Cart state as sent by the checkout UI on every cart mutation."""
    items: list[LineItem] = []
    promo_code: str | None = None
    customer_phone: str | None = None
    delivery_fee: int | None = Field(default=None, ge=0)

    model_config = {
        "json_schema_extra": {
            "example": {
                "items": [
                    {"product_id": 1, "category_id": 2, "unit_price": 15000, "quantity": 3}
                ],
                "promo_code": "SAVE5000",
                "customer_phone": "+221770000000",
            }
        }
    }

    @property
    def subtotal(self) -> int:
        return sum(item.line_total for item in self.items)

    @property
    def items_count(self) -> int:
        return sum(item.quantity for item in self.items)


class AppliedPromotion(BaseModel):
    model_config = ConfigDict(frozen=True)

    promotion_id: int
    name: str
    discount_amount: int


class PromoCodeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: bool
    reason: Literal["invalid_code"] | None = None


class PricedOrder(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal: int
    total_discount: int
    applied_promotions: list[AppliedPromotion] = []
    is_free_shipping: bool = False
    delivery_fee: int = 0
    total: int
    promo_code: PromoCodeResult | None = None
    degraded: bool = False


class PromoCodeValidation(BaseModel):
    ok: bool
    reason: Literal["invalid_code"] | None = None
    promotion_id: int | None = None
    discount_amount: int = 0


class FinalizedOrder(BaseModel):
    """An order that was successfully persisted, with the promotions priced into it."""
    customer_phone: str | None = None
    applied_promotions: list[AppliedPromotion] = []


class UsageRecordingReport(BaseModel):
    recorded: int = 0
    failed: int = 0
