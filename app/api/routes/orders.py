from fastapi import APIRouter, Depends

from app.api.deps import get_promotion_repository
from app.schemas.order import FinalizedOrder, UsageRecordingReport
from app.services.promotion_repository import PromotionRepository
from app.services.usage_tracker import record_usages_for_order

router = APIRouter(prefix="/api/orders", tags=["Orders"])


@router.post("/{order_id}/promotion-usages", response_model=UsageRecordingReport, status_code=202)
def record_order_promotion_usages(
    order_id: str,
    order: FinalizedOrder,
    repository: PromotionRepository = Depends(get_promotion_repository),
):
    """
    Called once the order has been saved. Usage accounting is best effort:
    failures are logged and reported in the body, never as an error status.
    """
    return record_usages_for_order(repository, order_id, order.applied_promotions, order.customer_phone)
