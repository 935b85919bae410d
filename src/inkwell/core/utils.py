"""Identity and timestamp helpers."""

import re
import time
from datetime import UTC, datetime
from unicodedata import normalize

MAX_SLUG_LENGTH = 50

_last_token = 0


def format_iso_utc(dt: datetime) -> str:
    """Format a datetime as a sortable ISO 8601 string with millisecond precision.

    Naive datetimes are assumed to be UTC.

    Examples:
        >>> format_iso_utc(datetime(2024, 3, 15, 9, 30, tzinfo=UTC))
        '2024-03-15T09:30:00.000Z'

    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now_iso() -> str:
    return format_iso_utc(datetime.now(UTC))


def unique_token() -> str:
    """Return a millisecond timestamp that strictly increases within the process."""
    global _last_token
    token = max(time.time_ns() // 1_000_000, _last_token + 1)
    _last_token = token
    return str(token)


def slugify_title(title: str, max_len: int = MAX_SLUG_LENGTH) -> str:
    """Reduce a title to lower-case ASCII letters, digits and single hyphens.

    Examples:
        >>> slugify_title("Hello World")
        'hello-world'
        >>> slugify_title("Café à Paris!")
        'cafe-a-paris'
        >>> slugify_title("../../etc/passwd")
        'etcpasswd'
        >>> slugify_title("?!")
        'post'

    """
    normalized = normalize("NFKD", title).encode("ascii", "ignore").decode("ascii").lower()
    stripped = re.sub(r"[^a-z0-9\s]", "", normalized)
    slug = re.sub(r"\s+", "-", stripped.strip())
    slug = slug[:max_len].strip("-")
    return slug or "post"


def derive_identity(title: str) -> str:
    """Derive a path-safe, unique post identity from its title.

    Examples:
        >>> derive_identity("Hello World")  # doctest: +SKIP
        'hello-world-1718000000000'

    """
    return f"{slugify_title(title)}-{unique_token()}"
