from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"  # "development" | "production"
    FRONTEND_URL: str = "http://localhost:5173"

    # Database
    DATABASE_URL: str = "sqlite:///./dev.db"
    DATABASE_ECHO: bool = False

    # Promotions
    TIMEZONE: str = "UTC"  # used for days_of_week / hours_of_day windows
    DELIVERY_FEE: int = 0  # whole units
    PUBLIC_RATE_LIMIT: str = "60/minute"

    class Config:
        env_file = ".env"

settings = Settings()
