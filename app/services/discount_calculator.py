import math

from app.schemas.order import LineItem, OrderDraft
from app.schemas.promotion import (
    BuyXGetYConfig,
    FixedAmountConfig,
    FreeShippingConfig,
    PercentageConfig,
    PromotionRead,
)
from app.services.eligibility import scope_ids


def round_amount(amount: float) -> int:
    """Whole currency units, half rounded up."""
    return int(math.floor(amount + 0.5))


def is_shipping_promotion(promotion: PromotionRead) -> bool:
    config = promotion.config
    if isinstance(config, FreeShippingConfig):
        return True
    return isinstance(config, (PercentageConfig, FixedAmountConfig)) and config.applies_to == "shipping"


def _scoped_subtotal(items: list[LineItem]) -> int:
    return sum(item.line_total for item in items)


def base_amount(promotion: PromotionRead, order: OrderDraft) -> int:
    """Part of the order a percentage / fixed amount discount is computed against."""
    config = promotion.config
    applies_to = getattr(config, "applies_to", "total")

    if applies_to == "total":
        return order.subtotal

    product_ids, category_ids = scope_ids(promotion)
    if applies_to == "products":
        return _scoped_subtotal([i for i in order.items if i.product_id in product_ids])
    if applies_to == "category":
        return _scoped_subtotal([i for i in order.items if i.category_id in category_ids])

    # shipping: handled by the free delivery flag, never as a line discount
    return 0


def _buy_x_get_y_discount(promotion: PromotionRead, order: OrderDraft) -> int:
    config: BuyXGetYConfig = promotion.config
    product_ids, category_ids = scope_ids(promotion)

    if product_ids or category_ids:
        eligibles = [
            item for item in order.items
            if item.product_id in product_ids or item.category_id in category_ids
        ]
    else:
        eligibles = list(order.items)

    if not eligibles:
        return 0

    total_qty = sum(item.quantity for item in eligibles)
    free_units = (total_qty // (config.buy_quantity + config.get_quantity)) * config.get_quantity
    if free_units == 0:
        return 0

    # the cheapest unit is the one given away
    cheapest = min(item.unit_price for item in eligibles)
    return free_units * cheapest


def compute_discount(promotion: PromotionRead, order: OrderDraft) -> int:
    """
    Monetary discount of an applicable promotion on `order`, in whole units.
    Never negative and never more than the promotion's scoped subtotal.
    """
    config = promotion.config
    discount = 0

    if isinstance(config, PercentageConfig):
        base = base_amount(promotion, order)
        discount = base * config.value / 100
        # optional cap
        if config.max_discount_amount is not None and discount > config.max_discount_amount:
            discount = config.max_discount_amount
        discount = min(round_amount(discount), base)

    elif isinstance(config, FixedAmountConfig):
        discount = min(config.value, base_amount(promotion, order))

    elif isinstance(config, BuyXGetYConfig):
        discount = _buy_x_get_y_discount(promotion, order)

    elif isinstance(config, FreeShippingConfig):
        # flagged on the priced order instead
        discount = 0

    return max(0, discount)
