"""Parse free-text questions into structured queries.

Parsing is pure: nothing here performs I/O or raises on odd input. Fields
that cannot be extracted are left as None and the caller decides whether
the query is usable.
"""

import re
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from ..models.query import RedditQuery, RedditQueryType, SportsQuery
from .team_aliases import normalize_team

# Date phrases, tried in order
ISO_DATE = re.compile(r"\b(\d{4}-\d{2}-\d{2})\b")
MONTH_DATE = re.compile(
    r"\b((?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\.?"
    r"\s+\d{1,2}(?:st|nd|rd|th)?,?\s+\d{4})\b",
    re.IGNORECASE,
)
RELATIVE_DATE = re.compile(r"\b(yesterday|last night|today|tonight)\b", re.IGNORECASE)

# Capitalized (multi-word) spans are entity candidates
CAPITALIZED_SPAN = re.compile(r"\b([A-Z][A-Za-z]+(?:\s+[A-Z][A-Za-z]+)*)\b")

QUESTION_STOPWORDS = frozenset({
    "who", "what", "did", "the", "how", "when", "where", "which", "why",
    "was", "were", "is", "are", "does", "do", "can", "could", "would",
    "will", "please", "tell", "show", "give", "check", "verify", "find",
    "me", "us", "a", "an", "and", "or", "vs", "versus", "against", "at",
    "game", "match", "score", "final", "result", "results", "won", "win",
    "beat", "lost", "play", "played",
    "yesterday", "today", "tonight", "last", "night",
    "nba", "nfl", "mlb", "nhl", "mls",
    "january", "february", "march", "april", "may", "june", "july",
    "august", "september", "october", "november", "december",
    "jan", "feb", "mar", "apr", "jun", "jul", "aug", "sep", "sept",
    "oct", "nov", "dec",
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday",
    "sunday",
})

SUBREDDIT_PATTERNS = (
    re.compile(r"\br/([A-Za-z0-9_]+)", re.IGNORECASE),
    re.compile(r"\b(?:on|from|in)\s+(?:the\s+)?([A-Za-z0-9_]+)\s+subreddit\b", re.IGNORECASE),
    re.compile(r"\bsubreddit\s+([A-Za-z0-9_]+)", re.IGNORECASE),
)

# First match wins; order matters
INTENT_KEYWORDS: Tuple[Tuple[RedditQueryType, Tuple[str, ...]], ...] = (
    (RedditQueryType.HOT, ("hot", "trending", "popular")),
    (RedditQueryType.NEW, ("new", "latest", "recent")),
    (RedditQueryType.TOP, ("top", "best")),
    (RedditQueryType.SEARCH, ("search", "find", "looking for")),
    (RedditQueryType.POST, ("post",)),
)

POST_URL = re.compile(r"comments/([a-z0-9]+)", re.IGNORECASE)
POST_ID = re.compile(r"\b(?=[a-z]*\d)([a-z0-9]{5,8})\b", re.IGNORECASE)
SEARCH_KEYWORD = re.compile(
    r"(?:search|find|looking for)\s+(?:for\s+)?"
    r"(?:posts?\s+(?:about|on|mentioning)\s+)?"
    r"[\"']?([^\"'?]+?)[\"']?\s*(?:\?|$)",
    re.IGNORECASE,
)
TRAILING_PREPOSITION = re.compile(r"\s+(?:in|on|from)$", re.IGNORECASE)
RESULT_LIMIT = re.compile(r"(\d+)\s+(?:posts?|results?|items?)", re.IGNORECASE)

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def parse_date(text: str, today: Optional[date] = None) -> Optional[str]:
    """Extract a game date as ``YYYY-MM-DD``.

    Args:
        text: Question text
        today: Reference day for relative phrases

    Returns:
        Canonical date string, or None if no date phrase was found
    """
    today = today or date.today()

    match = ISO_DATE.search(text)
    if match:
        try:
            return date.fromisoformat(match.group(1)).isoformat()
        except ValueError:
            pass

    match = MONTH_DATE.search(text)
    if match:
        parsed = _parse_month_date(match.group(1))
        if parsed is not None:
            return parsed.isoformat()

    match = RELATIVE_DATE.search(text)
    if match:
        phrase = match.group(1).lower()
        if phrase in ("yesterday", "last night"):
            return (today - timedelta(days=1)).isoformat()
        return today.isoformat()

    return None


def _parse_month_date(phrase: str) -> Optional[date]:
    cleaned = re.sub(r"(\d)(st|nd|rd|th)\b", r"\1", phrase, flags=re.IGNORECASE)
    cleaned = " ".join(cleaned.replace(",", " ").replace(".", " ").split())
    month, day, year = cleaned.split(" ")
    month = month[:3].title()
    try:
        return datetime.strptime(f"{month} {day} {year}", "%b %d %Y").date()
    except ValueError:
        return None


def extract_entities(text: str) -> List[str]:
    """Capitalized spans that are not question words, in first-seen order."""
    entities: List[str] = []
    for match in CAPITALIZED_SPAN.finditer(text):
        for run in _split_on_stopwords(match.group(1).split()):
            if run not in entities:
                entities.append(run)
    return entities


def _split_on_stopwords(words: Iterable[str]) -> List[str]:
    runs, current = [], []
    for word in words:
        if word.lower() in QUESTION_STOPWORDS:
            if current:
                runs.append(" ".join(current))
            current = []
        else:
            current.append(word)
    if current:
        runs.append(" ".join(current))
    return runs


def parse_sports_question(text: str, today: Optional[date] = None) -> SportsQuery:
    """Parse a question about a game result.

    The first entity is the team, the second the opponent. Both are
    normalized through the team alias table.
    """
    text = text or ""
    date_str = parse_date(text, today)

    # Date phrases may contain capitalized month names
    entity_text = MONTH_DATE.sub(" ", text)
    entities = extract_entities(entity_text)

    team_mention = entities[0] if entities else None
    opponent_mention = entities[1] if len(entities) > 1 else None

    return SportsQuery(
        team=normalize_team(team_mention) if team_mention else None,
        team_mention=team_mention,
        opponent=normalize_team(opponent_mention) if opponent_mention else None,
        date=date_str,
        original_question=text,
    )


def parse_subreddit(text: str) -> Tuple[Optional[str], str]:
    """Find the subreddit marker.

    Returns:
        The subreddit name (or None) and the text with the marker removed
    """
    for pattern in SUBREDDIT_PATTERNS:
        match = pattern.search(text)
        if match:
            remainder = text[:match.start()] + " " + text[match.end():]
            return match.group(1), " ".join(remainder.split())
    return None, text


def classify_intent(text: str, has_post_id: bool = False) -> RedditQueryType:
    """First-match keyword scan over the ordered intent list; defaults to hot."""
    lowered = text.lower()
    for intent, keywords in INTENT_KEYWORDS:
        if not any(re.search(r"\b" + re.escape(k), lowered) for k in keywords):
            continue
        if intent is RedditQueryType.POST and not has_post_id:
            continue
        return intent
    return RedditQueryType.HOT


def parse_post_id(text: str, stripped: str) -> Optional[str]:
    """Post id from a comments URL, else an id-like token."""
    match = POST_URL.search(text)
    if match:
        return match.group(1)
    match = POST_ID.search(stripped)
    return match.group(1) if match else None


def parse_search_keyword(stripped: str) -> Optional[str]:
    """Search term following search/find/looking for."""
    match = SEARCH_KEYWORD.search(stripped)
    if not match:
        return None
    keyword = TRAILING_PREPOSITION.sub("", match.group(1).strip()).strip()
    return keyword or None


def parse_limit(text: str) -> int:
    """Requested number of posts, clamped to [1, 100]."""
    match = RESULT_LIMIT.search(text)
    if not match:
        return DEFAULT_LIMIT
    return max(1, min(int(match.group(1)), MAX_LIMIT))


def parse_reddit_question(text: str) -> RedditQuery:
    """Parse a question about subreddit activity."""
    text = text or ""
    subreddit, stripped = parse_subreddit(text)
    post_id = parse_post_id(text, stripped)
    query_type = classify_intent(stripped, has_post_id=post_id is not None)

    keyword = None
    if query_type is RedditQueryType.SEARCH:
        keyword = parse_search_keyword(stripped)

    return RedditQuery(
        query_type=query_type,
        subreddit=subreddit,
        post_id=post_id if query_type is RedditQueryType.POST else None,
        keyword=keyword,
        limit=parse_limit(stripped),
        original_question=text,
    )
