from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    DATABASE_URL: str = "sqlite:///./orderflow.db"
    FRONTEND_ORIGINS: List[str] = ["http://localhost:3000"]
    LOG_LEVEL: str = "INFO"

    # empty url -> in-process cache (dev/tests)
    CART_CACHE_URL: str = ""
    CART_KEY_PREFIX: str = "cart:"
    CART_TTL_SECONDS: int = 3600
    CART_LOCK_DIR: Optional[str] = None
    CART_LOCK_TIMEOUT_SECONDS: float = 10.0
    CART_CAS_MAX_ATTEMPTS: int = 5
    CART_SWEEP_INTERVAL_SECONDS: int = 60

    PAYMENT_ENFORCE_ORDER_TOTAL: bool = True


settings = Settings()
