from datetime import UTC, datetime


def now() -> datetime:
    return datetime.now(UTC)


def matches_search(search: str, *values: str | None) -> bool:
    """Case-insensitive substring match against any of the given values."""
    needle = search.strip().lower()
    if not needle:
        return True
    return any(value is not None and needle in value.lower() for value in values)
