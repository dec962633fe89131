import logging
from contextlib import contextmanager
from datetime import datetime, timezone

from pydantic import ValidationError
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, desc, func, select

from app.core.exceptions import EntityNotFoundError, RepositoryUnavailableError
from app.models.models import Promotion, PromotionUsage
from app.schemas.promotion import PromotionRead, PromotionUsageCreate, PromotionUsageRead
from app.services.eligibility import has_reached_customer_limit, is_promotion_currently_valid

logger = logging.getLogger(__name__)


@contextmanager
def _storage_guard(session: Session, action: str):
    try:
        yield
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Promotion store failed while {action}: {e}")
        raise RepositoryUnavailableError("Promotion store is unavailable") from e


class PromotionRepository:
    def __init__(self, session: Session):
        self.session = session

    def _to_read(self, promo: Promotion) -> PromotionRead | None:
        try:
            return PromotionRead.model_validate(promo)
        except ValidationError as e:
            # A broken record never applies, it must not break checkout either
            logger.warning(f"Promotion {promo.id} is misconfigured, ignoring it: {e}")
            return None

    def _load_enabled(self) -> list[PromotionRead]:
        # Date filtering happens in python to avoid per-database timezone quirks
        with _storage_guard(self.session, "listing promotions"):
            rows = self.session.exec(
                select(Promotion)
                .where(Promotion.active == True)
                .order_by(desc(Promotion.created_at), desc(Promotion.id))
            ).all()

        promos = [p for p in (self._to_read(row) for row in rows) if p is not None]
        # sorted() is stable: equal priorities keep most-recently-created first
        return sorted(promos, key=lambda p: p.priority, reverse=True)

    def list_active(self, now: datetime) -> list[PromotionRead]:
        """Promotions within their date window and below their usage cap, priority-descending."""
        return [p for p in self._load_enabled() if is_promotion_currently_valid(p, now)]

    def find_by_code(
        self,
        code: str | None,
        now: datetime,
        promotions: list[PromotionRead] | None = None,
    ) -> PromotionRead | None:
        """
        Case-insensitive code lookup among currently valid promotions. None is a normal outcome.
        Pass `promotions` (an already loaded list_active result) to search that snapshot instead of reloading.
        """
        if not code or not code.strip():
            return None
        if promotions is None:
            promotions = self.list_active(now)
        wanted = code.strip().lower()
        return next(
            (p for p in promotions if p.promo_code and p.promo_code.strip().lower() == wanted),
            None,
        )

    def get(self, promotion_id: int) -> PromotionRead:
        with _storage_guard(self.session, "loading a promotion"):
            promo = self.session.get(Promotion, promotion_id)
        if not promo:
            raise EntityNotFoundError("Promotion not found")
        read = self._to_read(promo)
        if read is None:
            raise EntityNotFoundError("Promotion not found")
        return read

    def set_active(self, promotion_id: int, active: bool) -> PromotionRead:
        with _storage_guard(self.session, "toggling a promotion"):
            promo = self.session.get(Promotion, promotion_id)
            if not promo:
                raise EntityNotFoundError("Promotion not found")
            promo.active = active
            promo.updated_at = datetime.now(timezone.utc)
            self.session.add(promo)
            self.session.commit()
            self.session.refresh(promo)
        return self.get(promotion_id)

    def record_usage(self, usage: PromotionUsageCreate) -> PromotionUsageRead:
        """
        Increments the promotion's usage_count and appends a usage row.
        The increment happens in SQL so concurrent finalizations are all counted.
        Recording the same (promotion, order) pair twice returns the existing row.
        """
        existing = self._find_usage(usage.promotion_id, usage.order_id)
        if existing:
            return existing

        with _storage_guard(self.session, "recording a usage"):
            result = self.session.execute(
                update(Promotion)
                .where(Promotion.id == usage.promotion_id)
                .values(usage_count=Promotion.usage_count + 1)
            )
            if result.rowcount == 0:
                self.session.rollback()
                raise EntityNotFoundError(f"Promotion {usage.promotion_id} not found")

            row = PromotionUsage(**usage.model_dump())
            self.session.add(row)
            try:
                self.session.commit()
            except IntegrityError:
                # Another worker recorded this pair first; its increment stands
                self.session.rollback()
                existing = self._find_usage(usage.promotion_id, usage.order_id)
                if existing:
                    return existing
                raise
            self.session.refresh(row)
        return PromotionUsageRead.model_validate(row)

    def _find_usage(self, promotion_id: int, order_id: str) -> PromotionUsageRead | None:
        with _storage_guard(self.session, "looking up a usage"):
            row = self.session.exec(
                select(PromotionUsage).where(
                    PromotionUsage.promotion_id == promotion_id,
                    PromotionUsage.order_id == order_id,
                )
            ).first()
        return PromotionUsageRead.model_validate(row) if row else None

    def list_usages(self, promotion_id: int) -> list[PromotionUsageRead]:
        with _storage_guard(self.session, "listing usages"):
            rows = self.session.exec(
                select(PromotionUsage)
                .where(PromotionUsage.promotion_id == promotion_id)
                .order_by(desc(PromotionUsage.applied_at), desc(PromotionUsage.id))
            ).all()
        return [PromotionUsageRead.model_validate(r) for r in rows]

    def list_usages_by_customer(self, promotion_id: int, customer_phone: str) -> list[PromotionUsageRead]:
        with _storage_guard(self.session, "listing customer usages"):
            rows = self.session.exec(
                select(PromotionUsage)
                .where(
                    PromotionUsage.promotion_id == promotion_id,
                    PromotionUsage.customer_phone == customer_phone,
                )
                .order_by(desc(PromotionUsage.applied_at), desc(PromotionUsage.id))
            ).all()
        return [PromotionUsageRead.model_validate(r) for r in rows]

    def count_usages_by_customer(self, promotion_ids: list[int], customer_phone: str | None) -> dict[int, int]:
        """{promotion_id: uses} for one customer; promotions never used are absent."""
        if not customer_phone or not promotion_ids:
            return {}
        with _storage_guard(self.session, "counting customer usages"):
            rows = self.session.exec(
                select(PromotionUsage.promotion_id, func.count(PromotionUsage.id))
                .where(
                    PromotionUsage.promotion_id.in_(promotion_ids),
                    PromotionUsage.customer_phone == customer_phone,
                )
                .group_by(PromotionUsage.promotion_id)
            ).all()
        return {promotion_id: count for promotion_id, count in rows}

    def can_customer_use_promotion(self, promotion_id: int, customer_phone: str, now: datetime) -> bool:
        try:
            promo = self.get(promotion_id)
        except EntityNotFoundError:
            return False
        if not is_promotion_currently_valid(promo, now):
            return False
        if promo.max_uses_per_customer is None:
            return True
        used = self.count_usages_by_customer([promotion_id], customer_phone).get(promotion_id, 0)
        return not has_reached_customer_limit(promo, used)
