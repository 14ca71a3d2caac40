"""
Review statistics computed from raw review documents.

Both series are single-pass groupings; sorting happens in Python so the
ordering rules (ascending days, count then title for popularity) stay
explicit and independent of the storage engine.
"""

from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from catalog.models import DailyReviewCount, PopularBook

DEFAULT_POPULAR_BOOKS_LIMIT = 10


def review_day(created_at: Any) -> Optional[str]:
    """
    UTC calendar day of a creation timestamp.

    Naive datetimes are treated as UTC, which is how MongoDB returns them.
    ISO 8601 strings are parsed; anything else has no day.
    """
    if isinstance(created_at, str):
        try:
            created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(created_at, datetime):
        return None
    if created_at.tzinfo is not None:
        created_at = created_at.astimezone(timezone.utc)
    return created_at.strftime("%Y-%m-%d")


def reviews_per_day(reviews: Iterable[Dict[str, Any]]) -> List[DailyReviewCount]:
    """
    Count reviews per UTC day of their ``createdAt`` timestamp.

    Reviews whose timestamp is missing or unreadable are counted under a
    ``None`` date, so the counts always add up to the number of reviews.

    Args:
        reviews: Review documents

    Returns:
        One entry per day that has at least one review, the ``None`` day
        first and then oldest day first
    """
    counts = Counter(review_day(review.get("createdAt")) for review in reviews)
    ordered = sorted(counts.items(), key=lambda item: (item[0] is not None, item[0] or ""))

    return [DailyReviewCount(date=day, count=count) for day, count in ordered]


def top_books_by_review_count(
    reviews: Iterable[Dict[str, Any]],
    limit: int = DEFAULT_POPULAR_BOOKS_LIMIT
) -> List[PopularBook]:
    """
    Rank book titles by how many reviews mention them.

    Titles are compared exactly. Equal counts are ordered by title, with
    reviews lacking a title first.

    Args:
        reviews: Review documents
        limit: Maximum number of titles to return

    Returns:
        Up to ``limit`` entries, most reviewed first
    """
    if limit < 1:
        return []

    counts = Counter(review.get("bookTitle") for review in reviews)
    ranked = sorted(
        counts.items(),
        key=lambda item: (-item[1], item[0] is not None, item[0] or "")
    )
    return [PopularBook(title=title, review_count=count) for title, count in ranked[:limit]]
