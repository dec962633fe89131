from fastapi import APIRouter, Depends, Request

from app.api.deps import get_clock, get_promotion_repository, get_promotion_service
from app.core.clock import Clock
from app.core.config import settings
from app.core.rate_limit import limiter
from app.schemas.order import OrderDraft, PricedOrder, PromoCodeValidation
from app.schemas.promotion import (
    ProductPromotionsRead,
    PromotionActiveUpdate,
    PromotionRead,
    PromotionUsageRead,
)
from app.services.product_promotions import best_promotion, promotions_for_product
from app.services.promotion_repository import PromotionRepository
from app.services.promotion_service import PromotionService

router = APIRouter(prefix="/api/promotions", tags=["Promotions"])


@router.get("/active", response_model=list[PromotionRead])
@limiter.limit(settings.PUBLIC_RATE_LIMIT)
def list_active_promotions(
    request: Request,
    service: PromotionService = Depends(get_promotion_service),
):
    """Currently valid promotions, highest priority first"""
    return service.list_active()


@router.get("/product/{product_id}", response_model=ProductPromotionsRead)
@limiter.limit(settings.PUBLIC_RATE_LIMIT)
def get_product_promotions(
    request: Request,
    product_id: int,
    category_id: int | None = None,
    service: PromotionService = Depends(get_promotion_service),
):
    """Promotions to badge on a product card"""
    promos = promotions_for_product(service.list_active(), product_id, category_id)
    return ProductPromotionsRead(promotions=promos, best=best_promotion(promos))


@router.post("/price", response_model=PricedOrder)
@limiter.limit(settings.PUBLIC_RATE_LIMIT)
def price_order(
    request: Request,
    order: OrderDraft,
    service: PromotionService = Depends(get_promotion_service),
):
    """Recalculate discounts for the current cart. Never records usage."""
    return service.price_order_or_undiscounted(order)


@router.post("/validate-code", response_model=PromoCodeValidation)
@limiter.limit(settings.PUBLIC_RATE_LIMIT)
def validate_promo_code(
    request: Request,
    order: OrderDraft,
    service: PromotionService = Depends(get_promotion_service),
):
    return service.validate_code(order)


@router.get("/{promotion_id}/usages", response_model=list[PromotionUsageRead])
def list_promotion_usages(
    promotion_id: int,
    customer_phone: str | None = None,
    repository: PromotionRepository = Depends(get_promotion_repository),
):
    repository.get(promotion_id)
    if customer_phone:
        return repository.list_usages_by_customer(promotion_id, customer_phone)
    return repository.list_usages(promotion_id)


@router.get("/{promotion_id}/eligibility")
def check_customer_eligibility(
    promotion_id: int,
    customer_phone: str,
    repository: PromotionRepository = Depends(get_promotion_repository),
    clock: Clock = Depends(get_clock),
):
    """Whether a customer may still use a promotion (dates, total cap and per-customer cap)"""
    return {"allowed": repository.can_customer_use_promotion(promotion_id, customer_phone, clock())}


@router.patch("/{promotion_id}/active", response_model=PromotionRead)
def toggle_promotion(
    promotion_id: int,
    data: PromotionActiveUpdate,
    repository: PromotionRepository = Depends(get_promotion_repository),
):
    """Enable or disable a promotion"""
    return repository.set_active(promotion_id, data.active)
