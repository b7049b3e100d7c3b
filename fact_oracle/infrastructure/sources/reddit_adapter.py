"""Reddit implementation of the source provider interface.

Uses the public ``.json`` views of reddit.com; no API key is needed but a
descriptive User-Agent is required.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field

from ...domain.models.query import RedditQuery, RedditQueryType
from ...domain.models.verification import ErrorKind
from ...domain.ports.source_provider import SourceProvider, SourceResponse
from .http_errors import ProviderError, get_json

logger = logging.getLogger(__name__)


class RedditConfig(BaseModel):
    """Configuration for the Reddit adapter."""

    base_url: str = Field(default="https://www.reddit.com", description="Reddit base URL")
    user_agent: str = Field(
        default="FactOracle/1.0 (fact verification oracle)",
        description="User agent, required by Reddit",
    )
    timeout: float = Field(default=10.0, description="Request timeout in seconds")
    max_comments: int = Field(default=20, description="Top-level comments returned for a post")
    text_preview_chars: int = Field(default=500, description="Length of self text and comment previews")


def engagement_metrics(posts: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Aggregate score and comment activity over a list of posts."""
    total_score = sum(p.get("score") or 0 for p in posts)
    total_comments = sum(p.get("num_comments") or 0 for p in posts)
    avg_upvote_ratio = sum(p.get("upvote_ratio") or 0.5 for p in posts) / len(posts)
    return {
        "total_score": total_score,
        "total_comments": total_comments,
        "avg_score": round(total_score / len(posts)),
        "avg_comments": round(total_comments / len(posts)),
        "avg_upvote_ratio": round(avg_upvote_ratio, 2),
        "engagement": total_score + total_comments * 2,
    }


class RedditAdapter(SourceProvider):
    """Subreddit listings, posts and searches from Reddit."""

    source = "reddit"

    def __init__(
        self,
        config: Optional[RedditConfig] = None,
        provider_name: str = "Reddit",
    ):
        """Initialize the adapter.

        Args:
            config: Adapter configuration
            provider_name: Name of the provider
        """
        self._config = config or RedditConfig()
        self._name = provider_name
        self._client: Optional[httpx.AsyncClient] = None

    async def initialize(self) -> None:
        """Create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=self._config.timeout,
                headers={"User-Agent": self._config.user_agent},
                follow_redirects=True,
            )

    async def query(self, query: RedditQuery) -> SourceResponse:
        """Fetch the data a parsed Reddit question asks for."""
        if self._client is None:
            raise RuntimeError("Provider not initialized")

        try:
            if query.query_type is RedditQueryType.POST:
                payload = await self.fetch_post(query.subreddit, query.post_id)
            elif query.query_type is RedditQueryType.SEARCH:
                payload = await self.search(query.subreddit, query.keyword, query.limit)
            else:
                payload = await self.fetch_listing(
                    query.subreddit, query.query_type.value, query.limit
                )
        except ProviderError as e:
            logger.warning(f"Reddit query failed: {e.error_kind.value}: {e.message}")
            return SourceResponse.error(self.source, e.error_kind, e.message)

        return SourceResponse.ok(self.source, payload)

    async def fetch_listing(self, subreddit: str, sort: str = "hot", limit: int = 10) -> Dict[str, Any]:
        """Posts of a subreddit sorted by hot, new or top."""
        data = await get_json(
            self._client,
            f"/r/{subreddit}/{sort}.json",
            params={"limit": limit},
            not_found=ErrorKind.SUBREDDIT_NOT_FOUND,
            forbidden=ErrorKind.SUBREDDIT_PRIVATE,
        )
        listing = self._listing_data(data)
        posts = [self._post_summary(child["data"], full=True) for child in self._children(listing)]
        payload = {
            "subreddit": subreddit,
            "sort": sort,
            "posts": posts,
            "count": len(posts),
            "after": listing.get("after"),
        }
        if posts:
            payload["metrics"] = engagement_metrics(posts)
        return payload

    async def fetch_post(self, subreddit: str, post_id: str) -> Dict[str, Any]:
        """A post and its top-level comments."""
        data = await get_json(
            self._client,
            f"/r/{subreddit}/comments/{post_id}.json",
            not_found=ErrorKind.POST_NOT_FOUND,
            forbidden=ErrorKind.SUBREDDIT_PRIVATE,
        )
        if not isinstance(data, list) or not data:
            raise ProviderError(ErrorKind.INVALID_RESPONSE, "Expected a post and comment listing")

        post_children = self._children(self._listing_data(data[0]))
        if not post_children:
            raise ProviderError(ErrorKind.POST_NOT_FOUND, f"Post {post_id} not found")
        post = post_children[0]["data"]

        comment_children = self._children(self._listing_data(data[1])) if len(data) > 1 else []
        preview = self._config.text_preview_chars
        comments = [
            {
                "id": c["data"].get("id"),
                "author": c["data"].get("author"),
                "body": (c["data"].get("body") or "")[:preview],
                "score": c["data"].get("score"),
                "created_utc": c["data"].get("created_utc"),
            }
            for c in comment_children
            if c.get("kind") == "t1"
        ][: self._config.max_comments]

        summary = self._post_summary(post, full=True)
        summary["selftext"] = post.get("selftext")
        return {
            "subreddit": subreddit,
            "post": summary,
            "comments": comments,
            "comment_count": len(comments),
        }

    async def search(self, subreddit: str, keyword: str, limit: int = 10) -> Dict[str, Any]:
        """Search posts within a subreddit."""
        data = await get_json(
            self._client,
            f"/r/{subreddit}/search.json",
            params={"q": keyword, "restrict_sr": "on", "limit": limit},
            not_found=ErrorKind.SUBREDDIT_NOT_FOUND,
            forbidden=ErrorKind.SUBREDDIT_PRIVATE,
        )
        listing = self._listing_data(data)
        posts = [self._post_summary(child["data"]) for child in self._children(listing)]
        payload = {
            "subreddit": subreddit,
            "query": keyword,
            "posts": posts,
            "count": len(posts),
        }
        if posts:
            payload["metrics"] = engagement_metrics(posts)
        return payload

    @staticmethod
    def _listing_data(data: Any) -> Dict[str, Any]:
        if not isinstance(data, dict) or not isinstance(data.get("data"), dict):
            raise ProviderError(ErrorKind.INVALID_RESPONSE, "Response is not a Reddit listing")
        return data["data"]

    @staticmethod
    def _children(listing: Dict[str, Any]) -> List[Dict[str, Any]]:
        children = listing.get("children") or []
        if not isinstance(children, list):
            raise ProviderError(ErrorKind.INVALID_RESPONSE, "Listing children are not a list")
        return [c for c in children if isinstance(c, dict) and isinstance(c.get("data"), dict)]

    def _post_summary(self, post: Dict[str, Any], full: bool = False) -> Dict[str, Any]:
        summary = {
            "id": post.get("id"),
            "title": post.get("title"),
            "author": post.get("author"),
            "score": post.get("score"),
            "num_comments": post.get("num_comments"),
            "permalink": f"https://reddit.com{post.get('permalink', '')}",
            "created_utc": post.get("created_utc"),
        }
        if full:
            selftext = post.get("selftext")
            summary.update({
                "upvote_ratio": post.get("upvote_ratio"),
                "url": post.get("url"),
                "is_self": post.get("is_self"),
                "selftext": selftext[: self._config.text_preview_chars] if selftext else None,
                "domain": post.get("domain"),
                "thumbnail": post.get("thumbnail"),
            })
        return summary

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
