"""Tests for the source provider factory."""

import pytest
import pytest_asyncio

from fact_oracle.domain.models.query import SportsQuery
from fact_oracle.domain.ports.source_provider import SourceProvider, SourceResponse
from fact_oracle.infrastructure.sources.factory import SourceProviderFactory
from fact_oracle.infrastructure.sources.reddit_adapter import RedditAdapter
from fact_oracle.infrastructure.sources.sportsdb_adapter import SportsDBAdapter, SportsDBConfig


class StaticSourceProvider(SourceProvider):
    """Source provider returning a fixed payload."""

    def __init__(self, provider_name: str = "Static"):
        self._name = provider_name
        self._initialized = False

    async def initialize(self) -> None:
        self._initialized = True

    async def query(self, query) -> SourceResponse:
        return SourceResponse.ok("static", {"question": query.original_question})

    async def shutdown(self) -> None:
        self._initialized = False

    @property
    def provider_name(self) -> str:
        return self._name

    @property
    def is_available(self) -> bool:
        return self._initialized


class BrokenSourceProvider(StaticSourceProvider):
    """Source provider whose initialization fails."""

    async def initialize(self) -> None:
        raise ConnectionError("upstream unreachable")


@pytest_asyncio.fixture
async def source_factory() -> SourceProviderFactory:
    """Create a source provider factory with the built-in adapters."""
    factory = SourceProviderFactory()
    yield factory
    await factory.shutdown_all()


@pytest.mark.asyncio
async def test_create_default_providers(source_factory: SourceProviderFactory):
    """Test that both domains get an initialized adapter."""
    sports = await source_factory.create_provider(
        "sports", config=SportsDBConfig(timeout=3.0)
    )
    reddit = await source_factory.create_provider("reddit")

    assert isinstance(sports, SportsDBAdapter)
    assert isinstance(reddit, RedditAdapter)
    assert sports.is_available
    assert reddit.is_available


@pytest.mark.asyncio
async def test_create_unknown_provider(source_factory: SourceProviderFactory):
    with pytest.raises(ValueError):
        await source_factory.create_provider("weather")


@pytest.mark.asyncio
async def test_custom_registry():
    factory = SourceProviderFactory({"static": StaticSourceProvider})

    provider = await factory.create_provider("static", provider_name="Fixed")
    response = await provider.query(SportsQuery(original_question="Who won?"))

    assert provider.provider_name == "Fixed"
    assert response.payload == {"question": "Who won?"}
    with pytest.raises(ValueError):
        await factory.create_provider("sports")
    await factory.shutdown_all()


@pytest.mark.asyncio
async def test_initialization_failure():
    factory = SourceProviderFactory({"broken": BrokenSourceProvider})

    with pytest.raises(RuntimeError, match="upstream unreachable"):
        await factory.create_provider("broken")


@pytest.mark.asyncio
async def test_shutdown_all(source_factory: SourceProviderFactory):
    sports = await source_factory.create_provider("sports")
    reddit = await source_factory.create_provider("reddit")

    await source_factory.shutdown_all()

    assert not sports.is_available
    assert not reddit.is_available
