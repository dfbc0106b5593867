"""Per-user sliding windows for create and edit spam.

Both trackers key on (guild_id, user_id) and prune on every access, so a
quiet user's window never grows. ``sweep`` drops keys whose newest entry
has aged out and is called from the engine's hygiene loop.
"""
from __future__ import annotations

import math
import time
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .content import is_spammy_content, similarity

Key = Tuple[int, int]

CREATE_WINDOW_SECONDS = 10
EDIT_WINDOW_SECONDS = 30
SIMILARITY_CUTOFF = 0.8


@dataclass(frozen=True)
class MessageActivity:
    message_id: int
    content: str
    sent_at: float


@dataclass(frozen=True)
class EditActivity:
    message_id: int
    old_content: str
    new_content: str
    edited_at: float


def has_edit_cycle(contents: Sequence[str]) -> bool:
    """True when the last four contents alternate A, B, A, B."""
    if len(contents) < 4:
        return False
    a, b, c, d = contents[-4:]
    return a == c and b == d and a != b


class CreateSpamTracker:
    """Burst detector over new messages."""
    def __init__(self, window_seconds: float = CREATE_WINDOW_SECONDS, clock: Callable[[], float] = time.time):
        self.window_seconds = window_seconds
        self._clock = clock
        self._activity: Dict[Key, List[MessageActivity]] = {}

    def _prune(self, key: Key, now: float) -> List[MessageActivity]:
        cutoff = now - self.window_seconds
        kept = [a for a in self._activity.get(key, []) if a.sent_at > cutoff]
        self._activity[key] = kept
        return kept

    def record(self, guild_id: int, user_id: int, message_id: int, content: str, threshold: int = 5) -> bool:
        now = self._clock()
        key = (guild_id, user_id)
        window = self._prune(key, now)
        text = (content or "").lower()
        window.append(MessageActivity(message_id, text, now))
        if len(window) < threshold:
            return False
        recent = window[-threshold:]
        identical = sum(1 for a in recent if a.content == text)
        if identical >= math.ceil(threshold * 0.8):
            return True
        similar = sum(1 for a in recent if similarity(a.content, text) > SIMILARITY_CUTOFF)
        return similar >= math.ceil(threshold * 0.7)

    def window_size(self, guild_id: int, user_id: int) -> int:
        return len(self._activity.get((guild_id, user_id), []))

    def sweep(self, now: Optional[float] = None) -> int:
        now = self._clock() if now is None else now
        stale = [k for k in self._activity if not self._prune(k, now)]
        for k in stale:
            del self._activity[k]
        return len(stale)


class EditSpamTracker:
    """Edit-rate detector: bursts, repeated contents, A/B cycling, spammy text."""
    def __init__(self, window_seconds: float = EDIT_WINDOW_SECONDS, clock: Callable[[], float] = time.time):
        self.window_seconds = window_seconds
        self._clock = clock
        self._activity: Dict[Key, List[EditActivity]] = {}

    def _prune(self, key: Key, now: float) -> List[EditActivity]:
        cutoff = now - self.window_seconds
        kept = [a for a in self._activity.get(key, []) if a.edited_at > cutoff]
        self._activity[key] = kept
        return kept

    def record(self, guild_id: int, user_id: int, message_id: int, old_content: str, new_content: str, threshold: int = 3) -> bool:
        old = (old_content or "").lower()
        new = (new_content or "").lower()
        if old == new:
            return False
        now = self._clock()
        key = (guild_id, user_id)
        window = self._prune(key, now)
        window.append(EditActivity(message_id, old, new, now))

        if len(window) >= threshold:
            recent = window[-threshold:]
            if now - recent[0].edited_at < self.window_seconds:
                return True
            top = Counter(a.new_content for a in recent).most_common(1)
            if top and top[0][1] >= math.ceil(threshold * 0.7):
                return True
        if has_edit_cycle([a.new_content for a in window]):
            return True
        return is_spammy_content(new)

    def window_size(self, guild_id: int, user_id: int) -> int:
        return len(self._activity.get((guild_id, user_id), []))

    def sweep(self, now: Optional[float] = None) -> int:
        now = self._clock() if now is None else now
        stale = [k for k in self._activity if not self._prune(k, now)]
        for k in stale:
            del self._activity[k]
        return len(stale)


class SpamWindowTracker:
    """Facade selecting the create or edit variant."""
    def __init__(self, clock: Callable[[], float] = time.time):
        self.create = CreateSpamTracker(clock=clock)
        self.edit = EditSpamTracker(clock=clock)

    def sweep(self, now: Optional[float] = None) -> int:
        return self.create.sweep(now) + self.edit.sweep(now)


__all__ = [
    'SpamWindowTracker', 'CreateSpamTracker', 'EditSpamTracker', 'MessageActivity', 'EditActivity',
    'has_edit_cycle', 'CREATE_WINDOW_SECONDS', 'EDIT_WINDOW_SECONDS',
]
