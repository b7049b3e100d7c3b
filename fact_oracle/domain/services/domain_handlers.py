"""Per-domain parsing and query validation."""

from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional, Protocol

from ..models.query import OracleDomain, RedditQuery, RedditQueryType, SportsQuery
from ..models.verification import ErrorKind
from .question_parser import parse_reddit_question, parse_sports_question


@dataclass(frozen=True)
class ParseProblem:
    """A required field could not be extracted from the question."""

    error_kind: ErrorKind
    suggestion: str


class DomainHandler(Protocol):
    """Domain-specific steps used by the oracle service."""

    domain: str
    source: str

    def parse(self, question: str) -> SportsQuery | RedditQuery:
        """Parse a question into the domain's structured query."""
        ...

    def validate(self, query: SportsQuery | RedditQuery) -> Optional[ParseProblem]:
        """Check that the query carries every field its provider needs."""
        ...


class SportsHandler:
    """Game results from TheSportsDB."""

    domain = OracleDomain.SPORTS.value
    source = "thesportsdb"

    def __init__(self, today: Callable[[], date] = date.today):
        self._today = today

    def parse(self, question: str) -> SportsQuery:
        query = parse_sports_question(question, today=self._today())
        if query.date is None:
            # No date phrase means the game played today
            query = query.model_copy(update={"date": self._today().isoformat()})
        return query

    def validate(self, query: SportsQuery) -> Optional[ParseProblem]:
        if not query.team:
            return ParseProblem(
                ErrorKind.COULD_NOT_PARSE_TEAM_NAME,
                "Please include a team name in your question",
            )
        return None


class RedditHandler:
    """Subreddit activity from Reddit's JSON endpoints."""

    domain = OracleDomain.REDDIT.value
    source = "reddit"

    def parse(self, question: str) -> RedditQuery:
        return parse_reddit_question(question)

    def validate(self, query: RedditQuery) -> Optional[ParseProblem]:
        if not query.subreddit:
            return ParseProblem(
                ErrorKind.COULD_NOT_PARSE_SUBREDDIT,
                "Please include a subreddit name (e.g., r/wallstreetbets) in your question",
            )
        if query.query_type is RedditQueryType.POST and not query.post_id:
            return ParseProblem(
                ErrorKind.COULD_NOT_PARSE_POST_ID,
                "Please include a post ID or Reddit URL",
            )
        if query.query_type is RedditQueryType.SEARCH and not query.keyword:
            return ParseProblem(
                ErrorKind.COULD_NOT_PARSE_SEARCH_KEYWORD,
                "Please include a search term",
            )
        return None
