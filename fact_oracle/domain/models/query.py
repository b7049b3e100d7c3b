"""Domain models for structured queries parsed from free-text questions."""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field


class OracleDomain(str, Enum):
    """Fact domains the oracle can answer questions about."""

    SPORTS = "sports"
    REDDIT = "reddit"


class RedditQueryType(str, Enum):
    """Intents supported by the Reddit oracle."""

    HOT = "hot"  # What's hot on r/{subreddit}?
    NEW = "new"  # What's new on r/{subreddit}?
    TOP = "top"  # Top posts on r/{subreddit}?
    SEARCH = "search"  # Search r/{subreddit} for {keyword}
    POST = "post"  # Get specific post details


class SportsQuery(BaseModel):
    """A question about the outcome of a sports game."""

    domain: Literal["sports"] = "sports"
    team: Optional[str] = Field(None, description="Canonical team name")
    team_mention: Optional[str] = Field(None, description="Team name as written in the question")
    opponent: Optional[str] = Field(None, description="Canonical opponent name")
    date: Optional[str] = Field(None, description="Game date in YYYY-MM-DD format")
    original_question: str = Field("", description="The question as asked")

    class Config:
        """Pydantic model configuration."""
        frozen = True
        json_schema_extra = {
            "example": {
                "domain": "sports",
                "team": "Los Angeles Lakers",
                "team_mention": "Lakers",
                "opponent": None,
                "date": "2026-01-19",
                "original_question": "Who won the Lakers game on 2026-01-19?",
            }
        }

    @property
    def subject(self) -> Optional[str]:
        """Primary entity of the query."""
        return self.team


class RedditQuery(BaseModel):
    """A question about subreddit activity."""

    domain: Literal["reddit"] = "reddit"
    query_type: RedditQueryType = Field(RedditQueryType.HOT, description="Detected intent")
    subreddit: Optional[str] = Field(None, description="Subreddit name without the r/ prefix")
    post_id: Optional[str] = Field(None, description="Reddit post id for post lookups")
    keyword: Optional[str] = Field(None, description="Search term for search queries")
    limit: int = Field(10, ge=1, le=100, description="Number of posts to fetch")
    original_question: str = Field("", description="The question as asked")

    class Config:
        """Pydantic model configuration."""
        frozen = True

    @property
    def subject(self) -> Optional[str]:
        """Primary entity of the query."""
        return self.subreddit


StructuredQuery = Annotated[Union[SportsQuery, RedditQuery], Field(discriminator="domain")]
