from fastapi import Depends
from sqlmodel import Session

from app.core.clock import Clock, system_clock
from app.core.database import engine
from app.services.promotion_repository import PromotionRepository
from app.services.promotion_service import PromotionService


def get_session():
    with Session(engine) as session:
        yield session


def get_clock() -> Clock:
    return system_clock


def get_promotion_repository(session: Session = Depends(get_session)) -> PromotionRepository:
    return PromotionRepository(session)


def get_promotion_service(
    session: Session = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> PromotionService:
    return PromotionService(session, clock)
