"""
Configuration management for Karmic Canteen
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Karmic Canteen"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database (in-memory, reset on restart)
    DATABASE_URL: str = "sqlite:///:memory:"

    # Security
    SECRET_KEY: str = "karmic-canteen-demo-secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days
    SESSION_COOKIE_NAME: str = "kc_session"
    COOKIE_SECURE: bool = False

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Demo data
    SEED_DEMO_DATA: bool = True

    # Seating
    DEFAULT_SEATING_CAPACITY: int = 120

    # Waste estimate policy (heuristic, not a measured quantity)
    WASTE_BASELINE_KG_PER_MEAL: float = 0.08
    WASTE_REDUCTION_FACTOR: float = 0.6
    WASTE_OPT_OUT_OFFSET: float = 0.1

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
