"""Stateless content detectors used by the rule engine and grace monitor."""
from __future__ import annotations

import re
from difflib import SequenceMatcher
from typing import Iterable, List, Optional

from ...infrastructure.logging.structured_logging import warning as log_warning

# ---------------------------------------------------------------------------
# URLs
# ---------------------------------------------------------------------------

URL_PATTERN = re.compile(r"https?://[^\s]+", re.IGNORECASE)
_URL_STRIP = re.compile(r"https?://\S+", re.IGNORECASE)
_TRAILING_PUNCT = re.compile(r"[.,;!?]+$")


def extract_urls(content: str) -> List[str]:
    """URLs in ``content`` with trailing sentence punctuation trimmed."""
    urls = []
    for raw in URL_PATTERN.findall(content or ""):
        url = _TRAILING_PUNCT.sub("", raw)
        if url:
            urls.append(url)
    return urls


# ---------------------------------------------------------------------------
# Caps
# ---------------------------------------------------------------------------

_LETTERS = re.compile(r"[A-Za-z]")
_UPPER = re.compile(r"[A-Z]")
MIN_CAPS_LETTERS = 10


def caps_percentage(text: str) -> float:
    letters = _LETTERS.findall(text or "")
    if not letters:
        return 0.0
    upper = sum(1 for ch in letters if ch.isupper())
    return upper / len(letters) * 100


def strip_urls(text: str) -> str:
    return _URL_STRIP.sub("", text or "")


def is_excessive_caps(content: str, threshold: float = 70) -> bool:
    stripped = strip_urls(content)
    if len(_LETTERS.findall(stripped)) < MIN_CAPS_LETTERS:
        return False
    return caps_percentage(stripped) >= threshold


# ---------------------------------------------------------------------------
# Invites
# ---------------------------------------------------------------------------

INVITE_PATTERNS = [
    re.compile(r"(discord\.gg/|discordapp\.com/invite/|discord\.com/invite/)[a-zA-Z0-9]+", re.IGNORECASE),
    re.compile(r"discord\.gg/[a-zA-Z0-9\-_]+", re.IGNORECASE),
    # obfuscated spellings: d1scord . gg / abc, disc0rd com abc
    re.compile(r"d[il1]scord[\s.]*(gg|com)[\s/]*[a-zA-Z0-9]+", re.IGNORECASE),
    re.compile(r"disc[o0]rd[\s.]*(gg|com)[\s/]*[a-zA-Z0-9]+", re.IGNORECASE),
    # other platforms
    re.compile(r"(?:steam|epicgames|origin)[\s.:/]*(?:group|community|invite)", re.IGNORECASE),
    re.compile(r"(?:telegram|whatsapp)[\s.:/]*(?:invite|join|group)", re.IGNORECASE),
]


def contains_invite(content: str) -> bool:
    return any(p.search(content or "") for p in INVITE_PATTERNS)


# ---------------------------------------------------------------------------
# Profanity
# ---------------------------------------------------------------------------

def match_profanity(content: str, words: Iterable, patterns: Iterable) -> Optional[str]:
    """Return the offending word / pattern, or None.

    ``words`` and ``patterns`` are ProfanityWord / ProfanityPattern models.
    A pattern that does not compile is skipped with a warning.
    """
    text = content or ""
    lowered = text.lower()
    for entry in words:
        if not entry.enabled or not entry.word:
            continue
        if entry.whole_word_only:
            flags = 0 if entry.case_sensitive else re.IGNORECASE
            if re.search(r"\b" + re.escape(entry.word) + r"\b", text, flags):
                return entry.word
        elif entry.case_sensitive:
            if entry.word in text:
                return entry.word
        elif entry.word.lower() in lowered:
            return entry.word
    for entry in patterns:
        if not entry.enabled or not entry.pattern:
            continue
        try:
            compiled = re.compile(entry.pattern, entry.regex_flags())
        except re.error as e:
            log_warning("detector.profanity.bad_pattern", pattern=entry.pattern, error=str(e))
            continue
        if compiled.search(text):
            return entry.pattern
    return None


# ---------------------------------------------------------------------------
# Mentions
# ---------------------------------------------------------------------------

def mention_count(user_ids: Iterable[int], role_ids: Iterable[int]) -> int:
    return len(set(user_ids)) + len(set(role_ids))


# ---------------------------------------------------------------------------
# Repetition / spammy content
# ---------------------------------------------------------------------------

_REPETITIVE = [
    re.compile(r"(.)\1{9,}"),  # one character 10+ times
    re.compile(r"(\b\w+\b)(\s+\1){4,}", re.IGNORECASE),  # one word 5+ times
    re.compile(r"(.{2,}?)\1{5,}"),  # a 2+ char chunk 6+ times
]
_SPECIAL_CHARS = re.compile(r"[!@#$%^&*()_+=\[\]{};':\"\\|,.<>/?~`]")
_EMOJI = re.compile(
    "[\U0001F600-\U0001F64F\U0001F300-\U0001F5FF\U0001F680-\U0001F6FF\U0001F700-\U0001F77F"
    "\U0001F780-\U0001F7FF\U0001F800-\U0001F8FF\u2600-\u26FF\u2700-\u27BF]"
)


def is_spammy_content(content: str) -> bool:
    if not content:
        return False
    if any(p.search(content) for p in _REPETITIVE):
        return True
    length = len(content)
    if length > 10 and len(_SPECIAL_CHARS.findall(content)) / length > 0.3:
        return True
    if length > 5 and len(_EMOJI.findall(content)) / length > 0.2:
        return True
    return False


def similarity(a: str, b: str) -> float:
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return SequenceMatcher(None, a, b).ratio()


# ---------------------------------------------------------------------------
# Edit classification
# ---------------------------------------------------------------------------

_MENTION_TOKEN = re.compile(r"<@[!&]?\d+>")
_PROFANITY_HINTS = ("fuck", "shit")


def _caps_ratio_raw(text: str) -> float:
    return len(_UPPER.findall(text)) / len(text) if text else 0.0


def classify_change(old: Optional[str], new: Optional[str]) -> str:
    """Comma separated labels describing what an edit changed."""
    before = old or ""
    after = new or ""
    changes: List[str] = []

    old_links, new_links = len(URL_PATTERN.findall(before)), len(URL_PATTERN.findall(after))
    if new_links > old_links:
        changes.append(f"added_{new_links - old_links}_links")
    elif new_links < old_links:
        changes.append(f"removed_{old_links - new_links}_links")

    old_mentions, new_mentions = len(_MENTION_TOKEN.findall(before)), len(_MENTION_TOKEN.findall(after))
    if new_mentions > old_mentions:
        changes.append(f"added_{new_mentions - old_mentions}_mentions")
    elif new_mentions < old_mentions:
        changes.append(f"removed_{old_mentions - new_mentions}_mentions")

    growth = len(after) - len(before)
    if growth > 100:
        changes.append("significant_content_addition")
    elif growth < -100:
        changes.append("significant_content_removal")

    if _caps_ratio_raw(after) > _caps_ratio_raw(before) + 0.2:
        changes.append("increased_caps")

    if before and any(h in after for h in _PROFANITY_HINTS):
        changes.append("potential_profanity_added")

    return ", ".join(changes) if changes else "content_modification"


__all__ = [
    'URL_PATTERN', 'extract_urls', 'caps_percentage', 'strip_urls', 'is_excessive_caps', 'INVITE_PATTERNS', 'contains_invite',
    'match_profanity', 'mention_count', 'is_spammy_content', 'similarity', 'classify_change',
]
