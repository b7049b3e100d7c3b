"""Dependency injection configuration for hexagonal architecture."""

import logging
from functools import lru_cache
from typing import Optional

from ..domain.services.confidence import ConfidenceConfig, ConfidenceScorer
from ..domain.services.oracle_service import OracleService
from ..domain.services.payment_gate import PaymentGate
from ..domain.services.query_log import QueryLog
from ..domain.services.safety_governor import SafetyGovernor, SafetyLimits
from ..domain.services.safety_state import SafetyStateAccessor
from .payments.facilitator_adapter import FacilitatorConfig, FacilitatorPaymentAdapter
from .settings import OracleSettings
from .sources.factory import SourceProviderFactory
from .sources.reddit_adapter import RedditConfig
from .sources.sportsdb_adapter import SportsDBConfig
from .storage.json_stats_store import JsonStatsStore

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Service container for dependency injection."""

    def __init__(self, settings: Optional[OracleSettings] = None):
        """Initialize service container.

        Args:
            settings: Service configuration, read from the environment if omitted
        """
        logger.info("🔧 Setting up service container...")
        self.settings = settings or OracleSettings.from_env()

        self.source_factory = SourceProviderFactory()
        self.stats_store = JsonStatsStore(self.settings.stats_dir)
        self.safety_state = SafetyStateAccessor(self.stats_store)
        self.governor = SafetyGovernor(
            self.safety_state,
            SafetyLimits(
                max_queries_per_day=self.settings.max_queries_per_day,
                max_consecutive_errors=self.settings.max_consecutive_errors,
                min_interval_seconds=self.settings.min_intervals(),
            ),
        )
        self.query_log = QueryLog(
            self.safety_state,
            breaker_window=self.settings.max_consecutive_errors,
        )
        self.payment_provider = FacilitatorPaymentAdapter(
            FacilitatorConfig(
                api_key=self.settings.nvm_api_key,
                base_url=self.settings.facilitator_url,
                environment=self.settings.nvm_environment,
                timeout=self.settings.payment_timeout,
            )
        )
        self.payment_gate = PaymentGate(self.payment_provider, self.settings.plans())
        self.scorer = ConfidenceScorer(ConfidenceConfig(floor=self.settings.min_confidence))
        self._oracle_service: Optional[OracleService] = None

    async def start(self) -> OracleService:
        """Initialize providers and build the oracle service."""
        if self._oracle_service is not None:
            return self._oracle_service

        logger.info("📚 Setting up source providers...")
        sports = await self.source_factory.create_provider(
            "sports",
            config=SportsDBConfig(timeout=self.settings.http_timeout),
        )
        reddit = await self.source_factory.create_provider(
            "reddit",
            config=RedditConfig(
                timeout=self.settings.http_timeout,
                user_agent=self.settings.reddit_user_agent,
            ),
        )
        await self.payment_provider.initialize()

        self._oracle_service = OracleService(
            governor=self.governor,
            query_log=self.query_log,
            providers={"sports": sports, "reddit": reddit},
            payments=self.payment_gate,
            scorer=self.scorer,
        )
        logger.info("✅ Service container setup completed")
        return self._oracle_service

    async def get_oracle_service(self) -> OracleService:
        """Get the oracle service, starting providers on first use."""
        return await self.start()

    def get_payment_gate(self) -> PaymentGate:
        """Get the payment gate."""
        return self.payment_gate

    async def shutdown(self) -> None:
        """Close provider clients."""
        await self.source_factory.shutdown_all()
        await self.payment_provider.shutdown()
        self._oracle_service = None


# Global service container instance
@lru_cache()
def get_service_container() -> ServiceContainer:
    """Get global service container instance."""
    return ServiceContainer()


async def get_oracle_service() -> OracleService:
    """FastAPI dependency for the oracle service."""
    return await get_service_container().get_oracle_service()


def get_payment_gate() -> PaymentGate:
    """FastAPI dependency for the payment gate."""
    return get_service_container().get_payment_gate()
