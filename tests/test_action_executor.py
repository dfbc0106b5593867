"""Tests for ActionExecutor dispatch, recording and auditing."""

from datetime import timedelta
from unittest.mock import MagicMock

import discord
import pytest

from automod.domain.moderation.actions import ActionExecutor, find_handler, list_actions
from automod.domain.moderation.models import EditDiff, EventKind, LedgerDecision

from conftest import GUILD_ID, LOG_CHANNEL_ID, OWNER_ID, USER_ID


def decision(action, count=0, threshold=3, previous=0, downgraded=False):
    return LedgerDecision(
        action=action, count=count, threshold=threshold, severity=1, previous_count=previous, downgraded=downgraded
    )


def forbidden(text="Forbidden"):
    return discord.Forbidden(MagicMock(status=403, reason="Forbidden"), text)


@pytest.fixture
def scheduler():
    return MagicMock()


@pytest.fixture
def executor(db, scheduler):
    return ActionExecutor(store=db, scheduler=scheduler)


class TestRegistry:
    def test_handlers_registered(self):
        for action in ("warn", "delete", "mute", "timeout", "kick", "ban"):
            assert find_handler(action) is not None
        assert find_handler("explode") is None
        assert len(list_actions()) == 5


class TestWarn:
    @pytest.mark.asyncio
    async def test_warn_notifies_and_records(self, executor, db, event_factory, rule_factory, mock_message, mock_member):
        event = event_factory("THIS IS SHOUTING")
        ok = await executor.apply(event, rule_factory(), "Excessive caps (100% uppercase)", decision("warn", count=1, downgraded=True))

        assert ok is True
        mock_message.reply.assert_awaited_once()
        notice = mock_message.reply.await_args.kwargs["embed"]
        assert notice.title == "Warning Issued"
        mock_member.send.assert_awaited_once()

        rows = db.fetch_violations(GUILD_ID, USER_ID)
        assert len(rows) == 1
        assert rows[0]["action_taken"] == "warn"
        assert rows[0]["total_warnings"] == 1
        assert rows[0]["metadata"]["performed"] is True

    @pytest.mark.asyncio
    async def test_closed_dms_fall_back_to_channel(self, executor, event_factory, rule_factory, mock_member, mock_channel):
        mock_member.send.side_effect = forbidden("Cannot send messages to this user")
        await executor.apply(event_factory("THIS IS SHOUTING"), rule_factory(), "caps", decision("warn", count=1))
        mock_channel.send.assert_awaited_once()
        assert "you have been warned (1/3)" in mock_channel.send.await_args.args[0]

    @pytest.mark.asyncio
    async def test_warn_can_delete_message(self, executor, event_factory, rule_factory, mock_message):
        await executor.apply(event_factory("x"), rule_factory(delete_message=True), "r", decision("warn", count=1))
        mock_message.delete.assert_awaited_once()


class TestHarshActions:
    @pytest.mark.asyncio
    async def test_missing_permission_aborts_mute(self, executor, db, event_factory, rule_factory, mock_guild, mock_member):
        mock_guild.me.guild_permissions.moderate_members = False
        rule = rule_factory(trigger_type="profanity", action_type="mute", duration=10)
        ok = await executor.apply(event_factory("bad"), rule, "language", decision("mute"))

        assert ok is False
        mock_member.timeout.assert_not_awaited()
        meta = db.fetch_violations(GUILD_ID, USER_ID)[0]["metadata"]
        assert meta["performed"] is False
        assert meta["failure_reason"] == "missing_permission"

    @pytest.mark.asyncio
    async def test_mute_uses_rule_duration(self, executor, event_factory, rule_factory, mock_member):
        rule = rule_factory(trigger_type="profanity", action_type="timeout", duration=10)
        assert await executor.apply(event_factory("bad"), rule, "language", decision("mute")) is True
        assert mock_member.timeout.await_args.args[0] == timedelta(minutes=10)

    @pytest.mark.asyncio
    async def test_owner_is_never_actioned(self, executor, db, event_factory, rule_factory, mock_member):
        mock_member.id = OWNER_ID
        rule = rule_factory(trigger_type="profanity", action_type="kick")
        assert await executor.apply(event_factory("bad"), rule, "language", decision("kick")) is False
        mock_member.kick.assert_not_awaited()
        assert db.fetch_violations(GUILD_ID, USER_ID)[0]["metadata"]["failure_reason"] == "protected_member"

    @pytest.mark.asyncio
    async def test_kick_sends_dm_first(self, executor, event_factory, rule_factory, mock_member):
        order = []
        mock_member.send.side_effect = lambda **kw: order.append("dm")
        mock_member.kick.side_effect = lambda **kw: order.append("kick")
        rule = rule_factory(trigger_type="mention_spam", action_type="kick")
        assert await executor.apply(event_factory("@everyone"), rule, "mentions", decision("kick")) is True
        assert order == ["dm", "kick"]

    @pytest.mark.asyncio
    async def test_temporary_ban_schedules_unban(self, executor, scheduler, event_factory, rule_factory, mock_guild):
        rule = rule_factory(trigger_type="links", action_type="ban", duration=120)
        assert await executor.apply(event_factory("x"), rule, "malicious", decision("ban")) is True
        assert mock_guild.ban.await_args.kwargs["delete_message_seconds"] == 86400
        scheduler.schedule.assert_called_once()
        assert scheduler.schedule.call_args.args[0] == 120 * 60

    @pytest.mark.asyncio
    async def test_failed_discord_call_is_recorded(self, executor, db, event_factory, rule_factory, mock_guild):
        mock_guild.ban.side_effect = forbidden()
        rule = rule_factory(trigger_type="links", action_type="ban")
        assert await executor.apply(event_factory("x"), rule, "malicious", decision("ban")) is False
        assert db.fetch_violations(GUILD_ID, USER_ID)[0]["metadata"]["failure_reason"] == "ban_failed"


class TestDeleteAndAudit:
    @pytest.mark.asyncio
    async def test_delete_keeps_previous_count(self, executor, db, event_factory, rule_factory, mock_message):
        rule = rule_factory(trigger_type="links", action_type="delete")
        assert await executor.apply(event_factory("x"), rule, "malicious", decision("delete", count=2, previous=2)) is True
        mock_message.delete.assert_awaited_once()
        assert db.fetch_violations(GUILD_ID, USER_ID)[0]["total_warnings"] == 2

    @pytest.mark.asyncio
    async def test_audit_embed_posted_to_log_channel(self, executor, event_factory, rule_factory, mock_log_channel):
        rule = rule_factory(log_channel_id=LOG_CHANNEL_ID)
        await executor.apply(event_factory("THIS IS SHOUTING"), rule, "caps", decision("warn", count=1))
        mock_log_channel.send.assert_awaited_once()
        embed = mock_log_channel.send.await_args.kwargs["embed"]
        assert embed.title == "Automod warn"

    @pytest.mark.asyncio
    async def test_edit_details_recorded(self, executor, db, event_factory, rule_factory, mock_message):
        event = event_factory("NOW SHOUTING LOUDLY", kind=EventKind.EDIT, previous_content="now shouting loudly")
        event.diff = EditDiff(before="now shouting loudly", after="NOW SHOUTING LOUDLY", change_type="increased_caps")
        await executor.apply(event, rule_factory(), "caps", decision("warn", count=1))

        assert mock_message.reply.await_args.kwargs["embed"].title == "Warning Issued (edited message)"
        meta = db.fetch_violations(GUILD_ID, USER_ID)[0]["metadata"]
        assert meta["edit"] is True
        assert meta["change_type"] == "increased_caps"
        assert meta["before"] == "now shouting loudly"

    @pytest.mark.asyncio
    async def test_unknown_action(self, executor, db, event_factory, rule_factory):
        assert await executor.apply(event_factory("x"), rule_factory(), "r", decision("explode")) is False
        assert db.fetch_violations(GUILD_ID, USER_ID)[0]["metadata"]["failure_reason"] == "unknown_action"
