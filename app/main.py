from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.api.routes import orders, promotions
from app.api.middleware import LoggingMiddleware
from app.core.database import create_db_and_tables
from app.core.config import settings
from app.core.exceptions import EntityNotFoundError, BusinessLogicError, RepositoryUnavailableError
from app.core.rate_limit import limiter


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    yield


app = FastAPI(
    title="Promo Engine API",
    description="Promotions engine for online food ordering: eligibility, discounts and usage tracking",
    version="0.1.0",
    lifespan=lifespan,
)

@app.exception_handler(EntityNotFoundError)
async def entity_not_found_exception_handler(request: Request, exc: EntityNotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message})

@app.exception_handler(BusinessLogicError)
async def business_logic_exception_handler(request: Request, exc: BusinessLogicError):
    return JSONResponse(status_code=400, content={"detail": exc.message})

@app.exception_handler(RepositoryUnavailableError)
async def repository_unavailable_exception_handler(request: Request, exc: RepositoryUnavailableError):
    return JSONResponse(status_code=503, content={"detail": exc.message})

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(LoggingMiddleware)

app.include_router(promotions.router)
app.include_router(orders.router)

cors_origins = (
    [settings.FRONTEND_URL]
    if settings.ENVIRONMENT == "production"
    else ["*"]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT != "production",
    )
