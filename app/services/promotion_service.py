import logging

from sqlmodel import Session

from app.core.clock import Clock, system_clock
from app.core.config import settings
from app.core.exceptions import BusinessLogicError, RepositoryUnavailableError
from app.schemas.order import OrderDraft, PricedOrder, PromoCodeValidation
from app.schemas.promotion import PromotionRead
from app.services.promotion_composer import apply_promotions
from app.services.promotion_repository import PromotionRepository

logger = logging.getLogger(__name__)


class PromotionService:
    """Loads the promotion snapshot for one evaluation and hands it to the pure composer."""

    def __init__(self, session: Session, clock: Clock = system_clock):
        self.session = session
        self.clock = clock
        self.repository = PromotionRepository(session)

    def price_order(self, order: OrderDraft) -> PricedOrder:
        """Raises RepositoryUnavailableError when the promotion store is down."""
        now = self.clock()
        active = self.repository.list_active(now)
        # one snapshot per evaluation: the code promotion comes from the list already loaded
        code_promotion = self.repository.find_by_code(order.promo_code, now, promotions=active)

        usage_counts = self.repository.count_usages_by_customer([p.id for p in active], order.customer_phone)

        return apply_promotions(
            order,
            active,
            now,
            code_promotion=code_promotion,
            customer_usage_counts=usage_counts,
            delivery_fee=settings.DELIVERY_FEE,
        )

    def price_order_or_undiscounted(self, order: OrderDraft) -> PricedOrder:
        """Like price_order, but a promotions outage yields the undiscounted order instead of an error."""
        try:
            return self.price_order(order)
        except RepositoryUnavailableError:
            logger.warning("Promotions unavailable, pricing order without discounts")
            undiscounted = apply_promotions(
                order.model_copy(update={"promo_code": None}),
                [],
                self.clock(),
                delivery_fee=settings.DELIVERY_FEE,
            )
            return undiscounted.model_copy(update={"degraded": True})

    def validate_code(self, order: OrderDraft) -> PromoCodeValidation:
        """Checks only the entered code against the cart, ignoring automatic promotions."""
        if not order.promo_code or not order.promo_code.strip():
            raise BusinessLogicError("A promo code is required")

        now = self.clock()
        promo = self.repository.find_by_code(order.promo_code, now)
        if promo is None:
            return PromoCodeValidation(ok=False, reason="invalid_code")

        usage_counts = self.repository.count_usages_by_customer([promo.id], order.customer_phone)
        priced = apply_promotions(order, [], now, code_promotion=promo, customer_usage_counts=usage_counts)
        if not priced.promo_code or not priced.promo_code.ok:
            return PromoCodeValidation(ok=False, reason="invalid_code")

        discount = sum(p.discount_amount for p in priced.applied_promotions if p.promotion_id == promo.id)
        return PromoCodeValidation(ok=True, promotion_id=promo.id, discount_amount=discount)

    def list_active(self) -> list[PromotionRead]:
        return self.repository.list_active(self.clock())
