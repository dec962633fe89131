import logging

from app.core.exceptions import PromoEngineException
from app.schemas.order import AppliedPromotion, UsageRecordingReport
from app.schemas.promotion import PromotionUsageCreate
from app.services.promotion_repository import PromotionRepository

logger = logging.getLogger(__name__)


def record_usages_for_order(
    repository: PromotionRepository,
    order_id: str,
    applied_promotions: list[AppliedPromotion],
    customer_phone: str | None = None,
) -> UsageRecordingReport:
    """
    Records one usage per applied promotion of a persisted order.
    Called once, after the order is saved. Failures are logged and counted,
    never raised: the order stands whatever happens here.
    """
    report = UsageRecordingReport()
    for applied in applied_promotions:
        try:
            repository.record_usage(
                PromotionUsageCreate(
                    promotion_id=applied.promotion_id,
                    order_id=order_id,
                    customer_phone=customer_phone,
                    discount_amount=applied.discount_amount,
                )
            )
            report.recorded += 1
        except PromoEngineException as e:
            report.failed += 1
            logger.error(
                f"Could not record usage of promotion {applied.promotion_id} for order {order_id}: {e.message}"
            )
    return report
