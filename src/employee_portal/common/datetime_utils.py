from __future__ import annotations

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Current UTC time as a naive datetime (MySQL DATETIME has no zone).

    Note: Services take it as an injectable clock so tests can freeze time.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today() -> date:
    return utc_now().date()
