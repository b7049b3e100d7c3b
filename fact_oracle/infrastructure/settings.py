"""Service configuration loaded from environment variables."""

import logging
import os
from typing import Dict, Optional

from pydantic import BaseModel, Field

from ..domain.models.verification import DEFAULT_CONFIDENCE_FLOOR
from ..domain.services.payment_gate import PlanConfig

logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"⚠️ Ignoring invalid {name}={value!r}, using {default}")
        return default


def _env_int(name: str, default: int) -> int:
    return int(_env_float(name, default))


class OracleSettings(BaseModel):
    """Configuration for the oracle service."""

    nvm_api_key: str = ""
    nvm_environment: str = "live"
    facilitator_url: Optional[str] = None
    sports_plan_id: Optional[str] = None
    sports_agent_id: Optional[str] = None
    reddit_plan_id: Optional[str] = None
    reddit_agent_id: Optional[str] = None
    price_per_query: str = "$0.05"

    stats_dir: str = "./dashboard"
    max_queries_per_day: int = Field(default=500, ge=1)
    max_consecutive_errors: int = Field(default=5, ge=1)
    min_confidence: float = Field(default=DEFAULT_CONFIDENCE_FLOOR, ge=DEFAULT_CONFIDENCE_FLOOR, le=1.0)
    reddit_delay_seconds: float = Field(default=2.0, ge=0.0)
    sports_delay_seconds: float = Field(default=1.0, ge=0.0)

    http_timeout: float = Field(default=10.0, gt=0.0)
    payment_timeout: float = Field(default=10.0, gt=0.0)
    reddit_user_agent: str = "FactOracle/1.0 (fact verification oracle)"

    @classmethod
    def from_env(cls) -> "OracleSettings":
        """Create configuration from environment variables."""
        settings = cls(
            nvm_api_key=os.getenv("NVM_API_KEY", ""),
            nvm_environment=os.getenv("NVM_ENVIRONMENT", "live"),
            facilitator_url=os.getenv("NVM_FACILITATOR_URL") or None,
            sports_plan_id=os.getenv("NVM_PLAN_ID"),
            sports_agent_id=os.getenv("NVM_AGENT_ID"),
            reddit_plan_id=os.getenv("NVM_REDDIT_PLAN_ID"),
            reddit_agent_id=os.getenv("NVM_REDDIT_AGENT_ID"),
            price_per_query=os.getenv("ORACLE_PRICE_PER_QUERY", "$0.05"),
            stats_dir=os.getenv("ORACLE_STATS_DIR", "./dashboard"),
            max_queries_per_day=_env_int("ORACLE_MAX_QUERIES_PER_DAY", 500),
            max_consecutive_errors=_env_int("ORACLE_MAX_CONSECUTIVE_ERRORS", 5),
            min_confidence=_env_float("ORACLE_MIN_CONFIDENCE", DEFAULT_CONFIDENCE_FLOOR),
            reddit_delay_seconds=_env_float("ORACLE_REDDIT_DELAY_SECONDS", 2.0),
            sports_delay_seconds=_env_float("ORACLE_SPORTS_DELAY_SECONDS", 1.0),
            http_timeout=_env_float("ORACLE_HTTP_TIMEOUT", 10.0),
            payment_timeout=_env_float("ORACLE_PAYMENT_TIMEOUT", 10.0),
            reddit_user_agent=os.getenv("REDDIT_USER_AGENT", cls.model_fields["reddit_user_agent"].default),
        )

        if not settings.nvm_api_key:
            logger.warning("⚠️ NVM_API_KEY not found in environment variables")
        if not settings.reddit_plan_id:
            logger.info("Reddit oracle has no plan of its own, using the sports plan")
        return settings

    def plans(self) -> Dict[str, PlanConfig]:
        """Credit plan per domain; Reddit falls back to the sports plan."""
        return {
            "sports": PlanConfig(
                plan_id=self.sports_plan_id,
                agent_id=self.sports_agent_id,
                price_per_query=self.price_per_query,
            ),
            "reddit": PlanConfig(
                plan_id=self.reddit_plan_id or self.sports_plan_id,
                agent_id=self.reddit_agent_id or self.sports_agent_id,
                price_per_query=self.price_per_query,
            ),
        }

    def min_intervals(self) -> Dict[str, float]:
        """Pacing interval per domain."""
        return {
            "sports": self.sports_delay_seconds,
            "reddit": self.reddit_delay_seconds,
        }
