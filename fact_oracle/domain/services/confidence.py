"""Confidence scoring for provider answers."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from ..models.query import RedditQuery, RedditQueryType, SportsQuery
from ..models.verification import DEFAULT_CONFIDENCE_FLOOR


class ConfidenceConfig(BaseModel):
    """Confidence levels per domain.

    A single unverified source gets the base value; corroboration raises it,
    lower-trust query modes lower it.
    """

    floor: float = Field(default=DEFAULT_CONFIDENCE_FLOOR, ge=DEFAULT_CONFIDENCE_FLOOR, le=1.0)
    sports_base: float = 0.75
    sports_opponent_match: float = 0.85
    reddit_base: float = 0.85
    reddit_search: float = 0.80


class ConfidenceScorer:
    """Derive a bounded confidence value for a provider answer."""

    def __init__(self, config: Optional[ConfidenceConfig] = None):
        self._config = config or ConfidenceConfig()

    @property
    def floor(self) -> float:
        return self._config.floor

    def score(
        self,
        payload: Dict[str, Any],
        query: SportsQuery | RedditQuery,
        success: bool = True,
    ) -> float:
        """Score an answer.

        Failures always score zero; the floor only lifts successful answers.

        Args:
            payload: Normalized provider payload
            query: The query that produced it
            success: Whether the provider answered

        Returns:
            Confidence in [0, 1]
        """
        if not success:
            return 0.0

        if isinstance(query, SportsQuery):
            confidence = self._score_sports(payload, query)
        else:
            confidence = self._score_reddit(query)

        return min(1.0, max(self._config.floor, confidence))

    def _score_sports(self, payload: Dict[str, Any], query: SportsQuery) -> float:
        if query.opponent and payload.get("opponent_matched"):
            return self._config.sports_opponent_match
        return self._config.sports_base

    def _score_reddit(self, query: RedditQuery) -> float:
        if query.query_type is RedditQueryType.SEARCH:
            return self._config.reddit_search
        return self._config.reddit_base
