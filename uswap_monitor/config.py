"""Application configuration and environment settings"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class AffiliateSettings(BaseModel):
    """One registered reseller"""
    affiliate: str = Field(..., min_length=1, description="Affiliate identifier used by the explorer API")
    name: str = Field(..., min_length=1, description="Display name")
    thread_id: Optional[int] = Field(None, description="Forum topic receiving this reseller's cards")

class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    # Explorer (transaction feed)
    EXPLORER_BASE_URL: str = Field("https://explorer.near-intents.org/api", description="Explorer API base URL")
    EXPLORER_JWT: Optional[str] = Field(None, description="Explorer API bearer token")
    EXPLORER_TIMEOUT: float = Field(30.0, gt=0, description="Explorer request timeout in seconds")

    # Telegram (notification sink)
    TELEGRAM_BOT_TOKEN: Optional[str] = Field(None, description="Telegram bot token")
    TELEGRAM_API_URL: str = Field("https://api.telegram.org", description="Telegram Bot API base URL")
    TELEGRAM_TIMEOUT: float = Field(10.0, gt=0, description="Telegram request timeout in seconds")

    # Monitor settings
    MONITOR_ENABLED: bool = Field(True, description="Run the affiliate poller")
    MONITOR_GROUP_ID: Optional[int] = Field(None, description="Forum group receiving swap cards")
    MONITOR_MAIN_CHAT_ID: Optional[int] = Field(None, description="Chat whose description shows the grand total")
    POLL_INTERVAL: float = Field(60.0, ge=5, description="Seconds between poll cycles")
    PAGE_SIZE: int = Field(100, ge=1, le=100, description="Transactions requested per page")
    LOG_CAPACITY: int = Field(2000, ge=1, description="Recent transactions kept for search")
    BACKFILL_NOTIFY: bool = Field(False, description="Post cards for transactions found during backfill")
    DESCRIPTION_UPDATE_INTERVAL: float = Field(3600.0, gt=0, description="Seconds between chat description refreshes")

    AFFILIATES: List[AffiliateSettings] = Field(default_factory=list, description="Registered resellers (JSON list)")

    # Storage
    DATABASE_URL: str = Field("sqlite:///data/uswap_monitor.db", description="Cursor store database URL")

    LOG_LEVEL: str = Field("INFO", description="Root log level")

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True
    )

    @model_validator(mode='after')
    def check_credentials(self) -> 'Settings':
        """Reject feature combinations that cannot work without a credential"""
        if not self.TELEGRAM_BOT_TOKEN:
            if self.MONITOR_GROUP_ID is not None:
                raise ValueError("TELEGRAM_BOT_TOKEN is required when MONITOR_GROUP_ID is set")
            if self.MONITOR_MAIN_CHAT_ID is not None:
                raise ValueError("TELEGRAM_BOT_TOKEN is required when MONITOR_MAIN_CHAT_ID is set")

        seen = set()
        for affiliate in self.AFFILIATES:
            if affiliate.affiliate in seen:
                raise ValueError(f"Duplicate affiliate: {affiliate.affiliate}")
            seen.add(affiliate.affiliate)
        return self

    @property
    def notifications_enabled(self) -> bool:
        return bool(self.TELEGRAM_BOT_TOKEN) and (
            self.MONITOR_GROUP_ID is not None or self.MONITOR_MAIN_CHAT_ID is not None
        )

    def safe_dump(self) -> Dict[str, Any]:
        """Settings without credentials, for logging"""
        return self.model_dump(exclude={'EXPLORER_JWT', 'TELEGRAM_BOT_TOKEN', 'DATABASE_URL'})
