from pydantic_settings import BaseSettings, SettingsConfigDict
from decimal import Decimal
from typing import List
import os


class Settings(BaseSettings):
    APP_NAME: str = "Storefront API"
    DEBUG: bool = False
    # "production" and "staging" are treated as production-like (secure cookies, SameSite=None)
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    DATABASE_PATH: str = os.getenv("DATABASE_PATH", "data/storefront.db")

    @property
    def DATABASE_URL(self) -> str:
        # Always resolve path relative to backend directory, not current working directory
        db_path = self.DATABASE_PATH
        if db_path == ":memory:":
            return "sqlite://"
        if not os.path.isabs(db_path):
            backend_dir = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
            db_path = os.path.join(backend_dir, db_path)
        return f"sqlite:///{os.path.abspath(db_path)}"

    SECRET_KEY: str = os.getenv("SECRET_KEY", "storefront-dev-secret-change-me")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 1 day

    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    # Guest carts
    GUEST_CART_COOKIE: str = "guest_cart_id"
    GUEST_CART_MAX_AGE_DAYS: int = 30

    # Checkout shipping fees, in store currency
    SHIPPING_FEE_STANDARD: Decimal = Decimal("15000")
    SHIPPING_FEE_FAST: Decimal = Decimal("30000")

    HOST: str = "127.0.0.1"
    PORT: int = 5001

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.strip().lower() in ("production", "staging")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"  # Ignore extra environment variables
    )


settings = Settings()
