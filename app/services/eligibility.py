import logging
from datetime import datetime, timezone

from app.schemas.order import OrderDraft
from app.schemas.promotion import (
    CategoryIdsCondition,
    FixedAmountConfig,
    MinItemsCountCondition,
    MinOrderAmountCondition,
    PercentageConfig,
    ProductIdsCondition,
    PromotionRead,
)

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    # DB datetimes may come back naive (assume UTC)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def day_of_week(now: datetime) -> int:
    """0 = Sunday .. 6 = Saturday."""
    return (now.weekday() + 1) % 7


def parse_hhmm(text: str) -> int | None:
    """Minute of day for an "HH:MM" string, or None if it is not one."""
    try:
        hours, minutes = text.strip().split(":")
        hours, minutes = int(hours), int(minutes)
    except (AttributeError, ValueError):
        return None
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return None
    return hours * 60 + minutes


def scope_ids(promotion: PromotionRead) -> tuple[set[int], set[int]]:
    """
    Product and category ids a promotion is scoped to.
    The discount config's own lists win; targeting conditions fill in when the config has none.
    """
    config = promotion.config
    product_ids = set(getattr(config, "product_ids", None) or [])
    category_ids = set(getattr(config, "category_ids", None) or [])

    if not product_ids:
        for condition in promotion.conditions:
            if isinstance(condition, ProductIdsCondition):
                product_ids.update(condition.ids)
    if not category_ids:
        for condition in promotion.conditions:
            if isinstance(condition, CategoryIdsCondition):
                category_ids.update(condition.ids)
    return product_ids, category_ids


def has_reached_usage_limit(promotion: PromotionRead) -> bool:
    return promotion.usage_limit_total is not None and promotion.usage_count >= promotion.usage_limit_total


def has_reached_customer_limit(promotion: PromotionRead, customer_usage_count: int) -> bool:
    return (
        promotion.max_uses_per_customer is not None
        and customer_usage_count >= promotion.max_uses_per_customer
    )


def is_promotion_currently_valid(promotion: PromotionRead, now: datetime) -> bool:
    """Active flag, start/end dates and total usage cap."""
    if not promotion.active:
        return False

    now_utc = as_utc(now)
    if as_utc(promotion.start_date) > now_utc:
        return False
    if promotion.end_date is not None and as_utc(promotion.end_date) < now_utc:
        return False

    return not has_reached_usage_limit(promotion)


def is_promotion_valid_at_time(promotion: PromotionRead, now: datetime) -> bool:
    """
    Checks the weekly time window against the wall-clock reading `now`.
    Both hour bounds are inclusive. A window whose end is before its start
    (crossing midnight) never matches.
    """
    window = promotion.time_window
    if window is None:
        return True

    if window.days_of_week is not None and day_of_week(now) not in window.days_of_week:
        return False

    if window.hours_of_day is not None:
        start = parse_hhmm(window.hours_of_day.start)
        end = parse_hhmm(window.hours_of_day.end)
        if start is None or end is None or end < start:
            logger.warning(f"Promotion {promotion.id} has an unusable hours_of_day window, skipping")
            return False
        minute_of_day = now.hour * 60 + now.minute
        if not start <= minute_of_day <= end:
            return False

    return True


def _matches_targeting(promotion: PromotionRead, order: OrderDraft) -> bool:
    for condition in promotion.conditions:
        if isinstance(condition, ProductIdsCondition) and condition.ids:
            if not any(item.product_id in condition.ids for item in order.items):
                return False
        elif isinstance(condition, CategoryIdsCondition) and condition.ids:
            if not any(item.category_id in condition.ids for item in order.items):
                return False

    config = promotion.config
    if isinstance(config, (PercentageConfig, FixedAmountConfig)):
        product_ids, category_ids = scope_ids(promotion)
        if config.applies_to == "products" and not product_ids:
            logger.warning(f"Promotion {promotion.id} targets products but lists none")
            return False
        if config.applies_to == "category" and not category_ids:
            logger.warning(f"Promotion {promotion.id} targets categories but lists none")
            return False
    return True


def is_applicable(
    promotion: PromotionRead,
    order: OrderDraft,
    now: datetime,
    customer_usage_count: int = 0,
) -> bool:
    """
    Decide whether `promotion` applies to `order` at the instant `now`.
    Pure: no I/O, no clock reads. Cheap checks run first and the first failure wins.
    """
    if not is_promotion_currently_valid(promotion, now):
        return False

    if not is_promotion_valid_at_time(promotion, now):
        return False

    if has_reached_customer_limit(promotion, customer_usage_count):
        return False

    subtotal = order.subtotal
    items_count = order.items_count
    for condition in promotion.conditions:
        if isinstance(condition, MinOrderAmountCondition) and subtotal < condition.value:
            return False
        if isinstance(condition, MinItemsCountCondition) and items_count < condition.value:
            return False

    return _matches_targeting(promotion, order)
