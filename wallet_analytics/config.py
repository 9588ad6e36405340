"""
Wallet Analytics - Configuration.

============================================================
PURPOSE
============================================================
Explorer request settings and the static rate-limit schedule.

The schedule is fixed, not adaptive: it must be tuned to the
weakest explorer's published requests-per-second ceiling.
Requests over the ceiling are rejected by the explorer and
silently become empty results.

Configuration can be loaded from:
- Default values
- Environment variables (a .env file is honoured)

============================================================
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError


logger = logging.getLogger(__name__)


PLACEHOLDER_API_KEY = "YourApiKeyToken"


# ============================================================
# FETCHER CONFIGURATION
# ============================================================

@dataclass
class FetcherConfig:
    """Settings for a single explorer request."""
    
    api_key: str = PLACEHOLDER_API_KEY
    """Explorer API credential, shared read-only by all requests."""
    
    timeout_seconds: float = 15.0
    """Per-request timeout so one chain cannot stall the whole run."""
    
    page_size: int = 10000
    """Records requested per query (single page only)."""
    
    start_block: int = 0
    end_block: int = 99999999
    sort: str = "asc"
    
    user_agent: str = "WalletAnalytics/1.0"
    
    def validate(self) -> None:
        """Validate fetcher settings."""
        if self.timeout_seconds <= 0:
            raise ConfigurationError(
                "timeout_seconds must be positive",
                config_key="timeout_seconds",
            )
        if self.page_size < 1:
            raise ConfigurationError(
                "page_size must be positive",
                config_key="page_size",
            )


# ============================================================
# SCHEDULE CONFIGURATION
# ============================================================

@dataclass
class ScheduleConfig:
    """
    Two-level request throttle.
    
    Chains run in batches of `batch_size` with `batch_delay_seconds`
    between batches; inside a chain the token-transfer query starts
    `stagger_delay_seconds` after the transaction query.
    """
    
    batch_size: int = 2
    batch_delay_seconds: float = 0.5
    stagger_delay_seconds: float = 0.4
    
    def validate(self) -> None:
        """Validate schedule settings."""
        if self.batch_size < 1:
            raise ConfigurationError(
                "batch_size must be at least 1",
                config_key="batch_size",
            )
        if self.batch_delay_seconds < 0:
            raise ConfigurationError(
                "batch_delay_seconds must not be negative",
                config_key="batch_delay_seconds",
            )
        if self.stagger_delay_seconds < 0:
            raise ConfigurationError(
                "stagger_delay_seconds must not be negative",
                config_key="stagger_delay_seconds",
            )


# ============================================================
# TOP-LEVEL CONFIGURATION
# ============================================================

@dataclass
class WalletAnalyticsConfig:
    """Complete engine configuration."""
    
    fetcher: FetcherConfig = field(default_factory=FetcherConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    
    def validate(self) -> None:
        self.fetcher.validate()
        self.schedule.validate()
    
    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "WalletAnalyticsConfig":
        """
        Load configuration from the environment.
        
        Variables:
            ETHERSCAN_API_KEY (falls back to ALCHEMY_API_KEY)
            EXPLORER_TIMEOUT_SECONDS
            EXPLORER_PAGE_SIZE
            CHAIN_BATCH_SIZE
            CHAIN_BATCH_DELAY_SECONDS
            CHAIN_STAGGER_DELAY_SECONDS
        """
        load_dotenv(dotenv_path)
        
        api_key = (
            os.getenv("ETHERSCAN_API_KEY")
            or os.getenv("ALCHEMY_API_KEY")
            or PLACEHOLDER_API_KEY
        )
        if api_key == PLACEHOLDER_API_KEY:
            logger.warning("No explorer API key configured, using public placeholder key")
        
        defaults_fetcher = FetcherConfig()
        defaults_schedule = ScheduleConfig()
        
        config = cls(
            fetcher=FetcherConfig(
                api_key=api_key,
                timeout_seconds=_env_float(
                    "EXPLORER_TIMEOUT_SECONDS", defaults_fetcher.timeout_seconds
                ),
                page_size=_env_int("EXPLORER_PAGE_SIZE", defaults_fetcher.page_size),
            ),
            schedule=ScheduleConfig(
                batch_size=_env_int("CHAIN_BATCH_SIZE", defaults_schedule.batch_size),
                batch_delay_seconds=_env_float(
                    "CHAIN_BATCH_DELAY_SECONDS", defaults_schedule.batch_delay_seconds
                ),
                stagger_delay_seconds=_env_float(
                    "CHAIN_STAGGER_DELAY_SECONDS", defaults_schedule.stagger_delay_seconds
                ),
            ),
        )
        config.validate()
        return config


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be an integer, got {raw!r}",
            config_key=name,
            original_error=e,
        ) from e


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be a number, got {raw!r}",
            config_key=name,
            original_error=e,
        ) from e
