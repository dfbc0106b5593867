"""Text helpers for embeds and slash command replies."""
from __future__ import annotations
import time

DISCORD_MESSAGE_LIMIT = 1950
_AGE_UNITS = ((86400, "d"), (3600, "h"), (60, "m"))


def truncate(text: str, limit: int) -> str:
    text = text or ""
    if len(text) <= limit:
        return text
    return text[: max(0, limit - 3)] + "..."


def truncate_for_discord(text: str, limit: int = DISCORD_MESSAGE_LIMIT) -> str:
    return truncate(text, limit)


def format_rel_age(ts: int, now_ts: int | None = None) -> str:
    """Coarse age of ``ts`` in its largest whole unit (``45s``, ``3h``, ``2d``)."""
    delta = max(0, (now_ts if now_ts is not None else int(time.time())) - int(ts))
    for seconds, suffix in _AGE_UNITS:
        if delta >= seconds:
            return f"{delta // seconds}{suffix}"
    return f"{delta}s"


def format_account_age(days: float) -> str:
    return f"{days:.1f}d old"

__all__ = ["truncate", "truncate_for_discord", "format_rel_age", "format_account_age", "DISCORD_MESSAGE_LIMIT"]
