# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./database_storefront.db"

    FRONTEND_URL: str = "http://localhost:5173"

    # Socket server receiving admin notifications; empty disables the push
    SOCKET_URL: Optional[str] = "http://localhost:3001"
    NOTIFY_TIMEOUT_SECONDS: float = 2.0

    # Outgoing mail for customer order confirmations; empty host disables it
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_STARTTLS: bool = True
    MAIL_FROM: str = "no-reply@storefront.local"

    # Fallbacks used when the settings table has no shipping group yet
    DEFAULT_SHIPPING_FEE: int = 30000
    DEFAULT_FREE_SHIPPING_THRESHOLD: int = 500000

    # Stock level at or below which a product is flagged as low_stock
    LOW_STOCK_THRESHOLD: int = 5

    ORDER_NUMBER_MAX_ATTEMPTS: int = 10

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
