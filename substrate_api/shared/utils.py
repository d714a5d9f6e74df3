import re
from datetime import datetime, timezone

_WHITESPACE = re.compile(r"\s+")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def slugify(name: str) -> str:
    """Derive a slug by lower-casing and hyphenating whitespace."""
    return _WHITESPACE.sub("-", name.strip().lower())
