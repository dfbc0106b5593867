"""Rule evaluation: first enabled, non-exempt rule whose detector fires wins."""
from __future__ import annotations

from typing import Awaitable, Callable, Dict, List, Optional

from .content import contains_invite, extract_urls, is_excessive_caps, caps_percentage, strip_urls, match_profanity, mention_count
from .heuristics import extract_domain
from .spam_tracker import SpamWindowTracker
from ..moderation.interfaces import ConfigProvider
from ..moderation.models import ContentEvent, RuleMatch
from ...infrastructure.logging.structured_logging import debug as log_debug, error as log_error

DEFAULT_CAPS_THRESHOLD = 70
DEFAULT_MENTION_THRESHOLD = 5
DEFAULT_CREATE_SPAM_THRESHOLD = 5
DEFAULT_EDIT_SPAM_THRESHOLD = 3

SafeLinkNotifier = Callable[[ContentEvent, int], Awaitable[None]]


class RuleEngine:
    def __init__(
        self,
        config: ConfigProvider,
        reputation,
        spam: SpamWindowTracker,
        on_links_verified: Optional[SafeLinkNotifier] = None,
    ):
        self.config = config
        self.reputation = reputation
        self.spam = spam
        self.on_links_verified = on_links_verified

    async def evaluate(self, event: ContentEvent, rules: Optional[List] = None) -> Optional[RuleMatch]:
        if rules is None:
            rules = await self.config.get_rules(event.guild_id)
        memo: Dict[str, Optional[str]] = {}
        for rule in rules:
            if not rule.enabled:
                continue
            if rule.is_exempt(event.channel_id, event.role_ids):
                log_debug("rule_engine.exempt", rule_id=rule.id, channel_id=event.channel_id)
                continue
            try:
                reason = await self._check(rule, event, memo)
            except Exception as e:  # noqa: BLE001
                log_error("rule_engine.detector_failed", rule_id=rule.id, trigger=rule.trigger_type, error=str(e))
                continue
            if reason:
                return RuleMatch(rule=rule, reason=reason)
        return None

    async def _check(self, rule, event: ContentEvent, memo: Dict[str, Optional[str]]) -> Optional[str]:
        trigger = rule.trigger_type
        if trigger == "caps":
            threshold = rule.detector_threshold(DEFAULT_CAPS_THRESHOLD)
            if is_excessive_caps(event.content, threshold):
                return f"Excessive caps ({caps_percentage(strip_urls(event.content)):.0f}% uppercase)"
            return None
        if trigger == "links":
            return await self._check_links(event)
        if trigger == "invite_links":
            return "Invite link detected" if contains_invite(event.content) else None
        if trigger == "profanity":
            words = await self.config.get_profanity_words(event.guild_id)
            patterns = await self.config.get_profanity_patterns(event.guild_id)
            hit = match_profanity(event.content, words, patterns)
            return "Inappropriate language detected" if hit else None
        if trigger == "mention_spam":
            count = mention_count(event.mentioned_user_ids, event.mentioned_role_ids)
            if count >= rule.detector_threshold(DEFAULT_MENTION_THRESHOLD):
                return f"Mention spam ({count} mentions)"
            return None
        if trigger == "spam":
            if "spam" not in memo:
                memo["spam"] = self._check_spam(rule, event)
            return memo["spam"]
        log_debug("rule_engine.unknown_trigger", rule_id=rule.id, trigger=trigger)
        return None

    def _check_spam(self, rule, event: ContentEvent) -> Optional[str]:
        if event.is_edit:
            hit = self.spam.edit.record(
                event.guild_id,
                event.user_id,
                event.message_id,
                event.previous_content or "",
                event.content,
                threshold=rule.detector_threshold(DEFAULT_EDIT_SPAM_THRESHOLD),
            )
            return "Edit spam detected" if hit else None
        hit = self.spam.create.record(
            event.guild_id,
            event.user_id,
            event.message_id,
            event.content,
            threshold=rule.detector_threshold(DEFAULT_CREATE_SPAM_THRESHOLD),
        )
        return "Message spam detected" if hit else None

    async def _check_links(self, event: ContentEvent) -> Optional[str]:
        urls = extract_urls(event.content)
        if not urls:
            return None
        checked = 0
        for url in urls:
            checked += 1
            if await self.reputation.is_malicious(url, event.guild_id):
                return f"Malicious link detected ({extract_domain(url) or 'unknown domain'})"
        if checked and self.on_links_verified is not None:
            try:
                await self.on_links_verified(event, checked)
            except Exception as e:  # noqa: BLE001
                log_debug("rule_engine.safe_notice_failed", message_id=event.message_id, error=str(e))
        return None


__all__ = [
    'RuleEngine', 'DEFAULT_CAPS_THRESHOLD', 'DEFAULT_MENTION_THRESHOLD',
    'DEFAULT_CREATE_SPAM_THRESHOLD', 'DEFAULT_EDIT_SPAM_THRESHOLD',
]
