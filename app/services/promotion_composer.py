"""
Combines the promo-code promotion and the automatic promotions of an order.

Everything here is pure: the caller hands in the snapshot of active promotions,
the promotion behind the entered code (if any), the clock reading and the
per-customer usage counts. Re-running with the same inputs gives the same result
and nothing is recorded or mutated.
"""
from datetime import datetime
from functools import reduce
from typing import Mapping, NamedTuple, Sequence

from app.schemas.order import AppliedPromotion, OrderDraft, PricedOrder, PromoCodeResult
from app.schemas.promotion import PromotionRead
from app.services.discount_calculator import compute_discount, is_shipping_promotion
from app.services.eligibility import is_applicable


class _Evaluation(NamedTuple):
    applied: tuple[AppliedPromotion, ...] = ()
    is_free_shipping: bool = False
    halted: bool = False

    @property
    def total_discount(self) -> int:
        return sum(p.discount_amount for p in self.applied)


def _try_apply(
    state: _Evaluation,
    promotion: PromotionRead,
    order: OrderDraft,
    now: datetime,
    customer_usage_count: int,
) -> tuple[_Evaluation, bool]:
    """Returns the next state and whether the promotion made it into the order."""
    if not is_applicable(promotion, order, now, customer_usage_count):
        return state, False

    if is_shipping_promotion(promotion):
        entry = AppliedPromotion(promotion_id=promotion.id, name=promotion.name, discount_amount=0)
        return state._replace(applied=state.applied + (entry,), is_free_shipping=True), True

    amount = compute_discount(promotion, order)
    if amount <= 0:
        return state, False

    entry = AppliedPromotion(promotion_id=promotion.id, name=promotion.name, discount_amount=amount)
    return state._replace(applied=state.applied + (entry,)), True


def apply_promotions(
    order: OrderDraft,
    active_promotions: Sequence[PromotionRead],
    now: datetime,
    *,
    code_promotion: PromotionRead | None = None,
    customer_usage_counts: Mapping[int, int] | None = None,
    delivery_fee: int = 0,
) -> PricedOrder:
    """
    Price `order` against `active_promotions` (priority-descending).

    The promo-code promotion is applied first. Automatic promotions follow in
    priority order; a non-stackable one is skipped once anything is applied and,
    when it applies itself, ends the automatic pass.
    """
    counts = customer_usage_counts or {}
    subtotal = order.subtotal
    state = _Evaluation()
    code_result = None

    if order.promo_code:
        usage = counts.get(code_promotion.id, 0) if code_promotion is not None else 0
        if code_promotion is not None and is_applicable(code_promotion, order, now, usage):
            # a valid code with nothing to discount on this cart is still a valid code
            state, _ = _try_apply(state, code_promotion, order, now, usage)
            code_result = PromoCodeResult(ok=True)
        else:
            code_result = PromoCodeResult(ok=False, reason="invalid_code")

    automatic = [p for p in active_promotions if not p.promo_code]

    def step(current: _Evaluation, promotion: PromotionRead) -> _Evaluation:
        if current.halted:
            return current
        if not promotion.stackable and current.applied:
            return current
        nxt, applied = _try_apply(current, promotion, order, now, counts.get(promotion.id, 0))
        if applied and not promotion.stackable:
            return nxt._replace(halted=True)
        return nxt

    state = reduce(step, automatic, state)

    total_discount = state.total_discount
    fee = 0 if state.is_free_shipping else (order.delivery_fee if order.delivery_fee is not None else delivery_fee)

    return PricedOrder(
        subtotal=subtotal,
        total_discount=total_discount,
        applied_promotions=list(state.applied),
        is_free_shipping=state.is_free_shipping,
        delivery_fee=fee,
        total=max(0, subtotal - total_discount) + fee,
        promo_code=code_result,
    )
