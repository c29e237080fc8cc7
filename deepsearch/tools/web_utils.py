from __future__ import annotations

import re
from urllib.parse import urlparse

from deepsearch.exceptions import InputError

ELLIPSIS = "..."


def clean_query(text: str | None, *, field: str = "query") -> str:
    """Trim a caller-supplied query; reject it when nothing is left."""
    if not isinstance(text, str) or not text.strip():
        raise InputError(f"A non-empty {field} is required")
    return text.strip()


def is_valid_url(url: str) -> bool:
    """Basic URL validation."""
    try:
        result = urlparse(url)
        return all([result.scheme in ("http", "https"), result.netloc])
    except ValueError:
        return False


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def truncate(text: str, max_length: int) -> str:
    """Cut ``text`` to ``max_length`` characters, marking the cut with an ellipsis."""
    if max_length <= 0 or len(text) <= max_length:
        return text
    return text[:max_length].rstrip() + ELLIPSIS


def extract_domain(url: str) -> str:
    """Extract domain from URL for display."""
    try:
        host = urlparse(url).netloc
    except ValueError:
        return url
    return host[4:] if host.startswith("www.") else host
