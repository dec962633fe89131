from typing import Sequence

from app.schemas.promotion import CategoryIdsCondition, ProductIdsCondition, PromotionRead


def _targets(promotion: PromotionRead) -> tuple[set[int], set[int]]:
    product_ids: set[int] = set()
    category_ids: set[int] = set()
    for condition in promotion.conditions:
        if isinstance(condition, ProductIdsCondition):
            product_ids.update(condition.ids)
        elif isinstance(condition, CategoryIdsCondition):
            category_ids.update(condition.ids)

    config = promotion.config
    product_ids.update(getattr(config, "product_ids", None) or [])
    category_ids.update(getattr(config, "category_ids", None) or [])
    return product_ids, category_ids


def promotions_for_product(
    promotions: Sequence[PromotionRead],
    product_id: int,
    category_id: int | None = None,
) -> list[PromotionRead]:
    """
    Promotions naming the product directly or through its category, for badges on product cards.
    A promotion without any product/category list is an order-level promotion and is left out.
    Keeps the input order among equal priorities.
    """
    matching = []
    for promo in promotions:
        if not promo.active:
            continue
        product_ids, category_ids = _targets(promo)
        if not product_ids and not category_ids:
            continue
        if product_id in product_ids or (category_id is not None and category_id in category_ids):
            matching.append(promo)
    return sorted(matching, key=lambda p: p.priority, reverse=True)


def best_promotion(promotions: Sequence[PromotionRead]) -> PromotionRead | None:
    return promotions[0] if promotions else None
