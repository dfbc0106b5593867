"""Tests for rule ordering, exemptions and detector isolation."""

from unittest.mock import AsyncMock

import pytest

from automod.domain.detection.rule_engine import RuleEngine
from automod.domain.detection.spam_tracker import SpamWindowTracker
from automod.domain.moderation.models import EventKind

CAPS = {"id": 1, "name": "Caps", "trigger_type": "caps", "action_type": "warn"}
SWEAR = {"id": 2, "name": "Language", "trigger_type": "profanity", "action_type": "mute"}
LINKS = {"id": 3, "name": "Links", "trigger_type": "links", "action_type": "delete"}
MENTIONS = {"id": 4, "name": "Mentions", "trigger_type": "mention_spam", "threshold_value": 5, "action_type": "kick"}
SPAM = {"id": 5, "name": "Spam", "trigger_type": "spam", "threshold_value": 4, "action_type": "mute"}


class StubReputation:
    def __init__(self, malicious=False, raises=None):
        self.malicious = malicious
        self.raises = raises
        self.urls = []

    async def is_malicious(self, url, guild_id):
        self.urls.append(url)
        if self.raises:
            raise self.raises
        return self.malicious


def make_engine(provider, clock, reputation=None, notifier=None):
    return RuleEngine(provider, reputation or StubReputation(), SpamWindowTracker(clock=clock), on_links_verified=notifier)


class TestRuleEngine:
    @pytest.mark.asyncio
    async def test_first_matching_rule_wins(self, provider_factory, event_factory, clock):
        event = event_factory("THIS IS SHOUTING BADWORD")
        provider = provider_factory([CAPS, SWEAR], profanity_words=["badword"])
        match = await make_engine(provider, clock).evaluate(event)
        assert match.rule.id == 1
        assert match.reason == "Excessive caps (100% uppercase)"

        provider = provider_factory([SWEAR, CAPS], profanity_words=["badword"])
        match = await make_engine(provider, clock).evaluate(event)
        assert match.rule.id == 2
        assert match.reason == "Inappropriate language detected"

    @pytest.mark.asyncio
    async def test_caps_reason_ignores_url_letters(self, provider_factory, event_factory, clock):
        event = event_factory("THIS IS SHOUTING https://example.com/lowercase/path")
        match = await make_engine(provider_factory([CAPS]), clock).evaluate(event)
        assert match.reason == "Excessive caps (100% uppercase)"

    @pytest.mark.asyncio
    async def test_whitelisted_channel_is_exempt(self, provider_factory, event_factory, clock):
        rule = dict(CAPS, whitelist_channels=[500])
        match = await make_engine(provider_factory([rule]), clock).evaluate(event_factory("THIS IS SHOUTING"))
        assert match is None

    @pytest.mark.asyncio
    async def test_whitelisted_role_is_exempt(self, provider_factory, event_factory, clock):
        rule = dict(CAPS, whitelist_roles=[77])
        event = event_factory("THIS IS SHOUTING", role_ids=frozenset({77}))
        assert await make_engine(provider_factory([rule]), clock).evaluate(event) is None

    @pytest.mark.asyncio
    async def test_disabled_rule_skipped(self, provider_factory, event_factory, clock):
        rule = dict(CAPS, enabled=False)
        assert await make_engine(provider_factory([rule]), clock).evaluate(event_factory("THIS IS SHOUTING")) is None

    @pytest.mark.asyncio
    async def test_failing_detector_does_not_stop_evaluation(self, provider_factory, event_factory, clock):
        reputation = StubReputation(raises=RuntimeError("provider exploded"))
        engine = make_engine(provider_factory([LINKS, CAPS]), clock, reputation=reputation)
        match = await engine.evaluate(event_factory("LOOK AT THIS https://example.net NOW"))
        assert match.rule.id == 1

    @pytest.mark.asyncio
    async def test_malicious_link_reason(self, provider_factory, event_factory, clock):
        engine = make_engine(provider_factory([LINKS]), clock, reputation=StubReputation(malicious=True))
        match = await engine.evaluate(event_factory("claim https://bad.example/x"))
        assert match.reason == "Malicious link detected (bad.example)"

    @pytest.mark.asyncio
    async def test_safe_links_trigger_notice(self, provider_factory, event_factory, clock):
        notifier = AsyncMock()
        engine = make_engine(provider_factory([LINKS]), clock, notifier=notifier)
        event = event_factory("see https://a.example and https://b.example")
        assert await engine.evaluate(event) is None
        notifier.assert_awaited_once_with(event, 2)

    @pytest.mark.asyncio
    async def test_mention_spam_counts_users_and_roles(self, provider_factory, event_factory, clock):
        event = event_factory("hey", mentioned_user_ids=frozenset({1, 2, 3}), mentioned_role_ids=frozenset({8, 9}))
        match = await make_engine(provider_factory([MENTIONS]), clock).evaluate(event)
        assert match.reason == "Mention spam (5 mentions)"

    @pytest.mark.asyncio
    async def test_invite_rule(self, provider_factory, event_factory, clock):
        rule = {"id": 6, "name": "Invites", "trigger_type": "invites"}
        match = await make_engine(provider_factory([rule]), clock).evaluate(event_factory("discord.gg/abc"))
        assert match.reason == "Invite link detected"

    @pytest.mark.asyncio
    async def test_edit_spam_uses_edit_window(self, provider_factory, event_factory, clock):
        engine = make_engine(provider_factory([SPAM]), clock)
        contents = ["alpha one", "beta two", "alpha one", "beta two"]
        previous = "original"
        results = []
        for text in contents:
            clock.advance(1)
            event = event_factory(text, kind=EventKind.EDIT, previous_content=previous)
            results.append(await engine.evaluate(event))
            previous = text
        assert results[:3] == [None, None, None]
        assert results[3].reason == "Edit spam detected"

    @pytest.mark.asyncio
    async def test_no_rules(self, provider_factory, event_factory, clock):
        assert await make_engine(provider_factory([]), clock).evaluate(event_factory("anything")) is None
