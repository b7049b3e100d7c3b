"""TheSportsDB implementation of the source provider interface."""

import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx
from cachetools import TTLCache
from pydantic import BaseModel, Field

from ...domain.models.query import SportsQuery
from ...domain.models.verification import ErrorKind
from ...domain.ports.source_provider import SourceProvider, SourceResponse
from .http_errors import ProviderError, get_json

logger = logging.getLogger(__name__)


class SportsDBConfig(BaseModel):
    """Configuration for TheSportsDB adapter."""

    base_url: str = Field(
        default="https://www.thesportsdb.com/api/v1/json/3",
        description="API base URL; the free tier uses key 3",
    )
    timeout: float = Field(default=10.0, description="Request timeout in seconds")
    user_agent: str = Field(default="FactOracle/1.0", description="User agent header")
    cache_ttl: int = Field(default=3600, description="Team lookup cache TTL in seconds")
    cache_maxsize: int = Field(default=512, description="Maximum cached team lookups")


def matches_secondary(wanted: str, candidates: Iterable[Optional[str]]) -> bool:
    """Case-insensitive substring match of ``wanted`` against any candidate."""
    needle = wanted.lower()
    return any(needle in (c or "").lower() for c in candidates)


def _to_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class SportsDBAdapter(SourceProvider):
    """Game results from TheSportsDB.

    A query searches the team, then scans its last events for the requested
    date. Team ids are cached; event lists are not.
    """

    source = "thesportsdb"

    def __init__(
        self,
        config: Optional[SportsDBConfig] = None,
        provider_name: str = "TheSportsDB",
    ):
        """Initialize the adapter.

        Args:
            config: Adapter configuration
            provider_name: Name of the provider
        """
        self._config = config or SportsDBConfig()
        self._name = provider_name
        self._client: Optional[httpx.AsyncClient] = None
        self._teams: TTLCache = TTLCache(
            maxsize=self._config.cache_maxsize,
            ttl=self._config.cache_ttl,
        )

    async def initialize(self) -> None:
        """Create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=self._config.timeout,
                headers={"User-Agent": self._config.user_agent},
            )

    async def query(self, query: SportsQuery) -> SourceResponse:
        """Find the result of ``query.team``'s game on ``query.date``."""
        if self._client is None:
            raise RuntimeError("Provider not initialized")

        try:
            team = await self._find_team(query.team)
            if team is None:
                return SourceResponse.error(self.source, ErrorKind.TEAM_NOT_FOUND)

            events = await self._last_events(team["idTeam"])
            if not events:
                return SourceResponse.error(self.source, ErrorKind.NO_EVENTS)

            event = next((e for e in events if e.get("dateEvent") == query.date), None)
            if event is None:
                return SourceResponse.error(
                    self.source,
                    ErrorKind.EVENT_NOT_FOUND_ON_DATE,
                    f"No {team.get('strTeam', query.team)} game found on {query.date}",
                )

            payload = self._normalize_event(event)
        except ProviderError as e:
            logger.warning(f"TheSportsDB query failed: {e.error_kind.value}: {e.message}")
            return SourceResponse.error(self.source, e.error_kind, e.message)

        if query.opponent:
            payload["opponent_matched"] = matches_secondary(
                query.opponent, (payload["home_team"], payload["away_team"])
            )
        else:
            payload["opponent_matched"] = None
        return SourceResponse.ok(self.source, payload)

    async def _find_team(self, name: str) -> Optional[Dict[str, Any]]:
        key = name.lower()
        if key in self._teams:
            return self._teams[key]

        data = await get_json(self._client, "/searchteams.php", params={"t": name})
        if not isinstance(data, dict):
            raise ProviderError(ErrorKind.INVALID_RESPONSE, "Unexpected team search response")

        teams = data.get("teams") or []
        if not isinstance(teams, list) or not teams:
            return None
        team = teams[0]
        if not isinstance(team, dict) or not team.get("idTeam"):
            raise ProviderError(ErrorKind.INVALID_RESPONSE, "Team record has no id")

        self._teams[key] = team
        return team

    async def _last_events(self, team_id: str) -> List[Dict[str, Any]]:
        data = await get_json(self._client, "/eventslast.php", params={"id": team_id})
        if not isinstance(data, dict):
            raise ProviderError(ErrorKind.INVALID_RESPONSE, "Unexpected events response")

        results = data.get("results") or []
        if not isinstance(results, list):
            raise ProviderError(ErrorKind.INVALID_RESPONSE, "Events are not a list")
        return [e for e in results if isinstance(e, dict)]

    def _normalize_event(self, event: Dict[str, Any]) -> Dict[str, Any]:
        home_team = event.get("strHomeTeam")
        away_team = event.get("strAwayTeam")
        home_score = _to_int(event.get("intHomeScore"))
        away_score = _to_int(event.get("intAwayScore"))
        if not home_team or not away_team or home_score is None or away_score is None:
            raise ProviderError(ErrorKind.INVALID_RESPONSE, "Event is missing teams or scores")

        if home_score > away_score:
            winner = home_team
        elif away_score > home_score:
            winner = away_team
        else:
            winner = "tie"

        return {
            "home_team": home_team,
            "away_team": away_team,
            "home_score": home_score,
            "away_score": away_score,
            "winner": winner,
            "final_score": f"{home_score}-{away_score}",
            "league": event.get("strLeague"),
            "date": event.get("dateEvent"),
            "event_id": event.get("idEvent"),
        }

    async def shutdown(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def provider_name(self) -> str:
        """Get the provider name."""
        return self._name

    @property
    def is_available(self) -> bool:
        """Check if the provider is ready."""
        return self._client is not None
