"""
Configuration management for the Query Gateway.
Uses pydantic-settings for environment variable management.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .logging_config import create_logger

logger = create_logger(__name__)


DEFAULT_MARKETS = ",".join([
    "USD+rvYAfWj5gh67oV6fW32ZzP3Aw4Eubs59B",  # Bitstamp USD
    "BTC+rvYAfWj5gh67oV6fW32ZzP3Aw4Eubs59B",  # Bitstamp BTC
    "BTC+rMwjYedjc7qqtKYVLiAccJSmCwih4LnE2q",  # Snapswap BTC
    "BTC+rfYv1TXnwgDDK4WQNbFALykYuEBnrR4pDX",  # Dividend Rippler BTC
    "BTC+rNPRNzBB92BVpAhhZr4iXDTveCgV5Pofm9",  # Ripple Israel BTC
    "USD+rMwjYedjc7qqtKYVLiAccJSmCwih4LnE2q",  # Snapswap USD
    "CNY+rnuF96W4SZoCJmbHYBFoJZpR8eCaxNvekK",  # RippleCN CNY
    "CNY+razqQKzJRdB4UxFPWf5NEpEG3WMkmwgcXA",  # RippleChina CNY
    "JPY+rMAz5ZnK73nyNUL4foAvaxdreczCkG3vA6",  # RippleTradeJapan JPY
])


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="Ledger Query Gateway")
    app_version: str = Field(default="1.0.0")
    environment: str = Field(default="development")
    debug: bool = Field(default=False)

    # Server
    server_host: str = Field(default="0.0.0.0")
    server_port: int = Field(default=5993)

    # Redis configuration
    cache_enabled: bool = Field(default=False)
    redis_host: Optional[str] = Field(default="localhost")
    redis_port: Optional[int] = Field(default=6379)
    redis_db: int = Field(default=0)
    redis_password: Optional[str] = Field(default=None)
    cache_ttl: Optional[int] = Field(default=None)  # None keeps entries until restart

    # Ledger query collaborator
    ledger_query_url: str = Field(default="http://localhost:5990")
    ledger_query_timeout: float = Field(default=30.0)
    ledger_query_retries: int = Field(default=3)

    # Markets
    native_currency: str = Field(default="XRP")
    default_markets: str = Field(default=DEFAULT_MARKETS)

    # Logging configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    @field_validator('default_markets')
    @classmethod
    def validate_default_markets(cls, v: str) -> str:
        """Validate that default_markets is a non-empty comma-separated string."""
        if not v or not v.strip():
            raise ValueError("default_markets cannot be empty")
        for entry in v.split(','):
            entry = entry.strip()
            if entry and '+' not in entry:
                raise ValueError(f"default market '{entry}' must be CODE+ISSUER")
        return v.strip()

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(valid_levels))}")
        return v.upper()

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = {'json', 'text'}
        if v.lower() not in valid_formats:
            raise ValueError(f"log_format must be one of: {', '.join(sorted(valid_formats))}")
        return v.lower()

    def get_default_markets_list(self) -> List[dict]:
        """Get the reference basket as a list of {currency, issuer} dicts."""
        markets = []
        for entry in self.default_markets.split(','):
            entry = entry.strip()
            if not entry:
                continue
            currency, issuer = entry.split('+', 1)
            markets.append({"currency": currency.strip(), "issuer": issuer.strip()})
        return markets

    def get_redis_url(self) -> str:
        """Get Redis connection URL."""
        if self.redis_password:
            return f"redis://:{self.redis_password}@{self.redis_host}:{self.redis_port}/{self.redis_db}"
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"


class GatewayOptions(BaseModel):
    """Immutable runtime switches, decided once at startup."""

    model_config = ConfigDict(frozen=True)

    debug: bool = False
    cache_enabled: bool = False
    redis_url: Optional[str] = None
    cache_ttl: Optional[int] = None


def resolve_options(settings: Settings, debug: bool = False, no_cache: bool = False) -> GatewayOptions:
    """
    Combine settings with command line switches into GatewayOptions.

    Caching is only turned on when requested by configuration, not vetoed
    by ``no_cache`` and the redis host and port are both present.
    """
    cache_enabled = settings.cache_enabled and not no_cache

    if cache_enabled and (not settings.redis_host or not settings.redis_port):
        logger.error("Redis port and host are required, caching disabled", extra={
            "redis_host": settings.redis_host,
            "redis_port": settings.redis_port
        })
        cache_enabled = False

    return GatewayOptions(
        debug=debug or settings.debug,
        cache_enabled=cache_enabled,
        redis_url=settings.get_redis_url() if cache_enabled else None,
        cache_ttl=settings.cache_ttl,
    )


# Global settings instance
settings = Settings()
