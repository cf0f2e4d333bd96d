"""
Small text and date helpers shared by the adapters and the ranking code.
"""

import hashlib
import re
from datetime import datetime, timezone
from typing import Any, Optional

_WHITESPACE = re.compile(r"\s+")


def normalize_title(title: Optional[str]) -> str:
    """Lower-case, trim and collapse internal whitespace."""
    if not title:
        return ""
    return _WHITESPACE.sub(" ", title).strip().lower()


def clean_text(value: Any) -> Optional[str]:
    """Return a stripped string, or None for missing/blank values."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a provider timestamp into an aware UTC datetime.

    Providers use ISO 8601 with ``Z`` (NewsAPI, GNews), an explicit offset
    (MediaStack) or a naive ``YYYY-MM-DD HH:MM:SS`` (NewsData, UTC).
    Unparseable values yield ``None`` rather than "now" so that undated
    articles never receive a recency bonus.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        raw = str(value).strip()
        if not raw:
            return None
        try:
            dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def content_id(provenance: str, url: str, title: str) -> str:
    """Stable identifier derived from the article content."""
    digest = hashlib.sha1(f"{url}\n{normalize_title(title)}".encode("utf-8")).hexdigest()
    return f"{provenance}-{digest[:16]}"
