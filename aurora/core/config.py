from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings

PACKAGE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    PROJECT_NAME: str = "Aurora Apparel API"
    VERSION: str = "1.0.0"

    # Catalog
    CATALOG_PATH: str = str(PACKAGE_DIR / "data" / "products.json")
    PLACEHOLDER_IMAGE: str = "/images/placeholder.jpg"
    BRAND_NAME: str = "Aurora Apparel"
    CURRENCY: str = "USD"

    # Visitor sessions
    SESSION_COOKIE_NAME: str = "sessionId"
    SESSION_COOKIE_SECURE: bool = False

    # Checkout
    DEFAULT_COUNTRY: str = "USA"

    # Web
    STATIC_DIR: Optional[str] = None
    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    # Analytics mirror
    API_BASE_URL: str = "http://localhost:3000"
    MIRROR_STORAGE_PATH: str = ".aurora_storage.json"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
