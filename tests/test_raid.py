"""Tests for join-rate raid detection and the raid responses."""

from datetime import timedelta
from unittest.mock import MagicMock

import discord
import pytest

from automod.domain.moderation.models import JoinAssessment, JoinRecord
from automod.domain.policy.models import AntiRaidSettings
from automod.services.raid_service import (
    RaidDetector,
    RaidResponder,
    check_for_raid,
    suspicious_factors,
)

from conftest import ALERT_CHANNEL_ID, BASE_TS, GUILD_ID


def settings(**overrides):
    data = dict(enabled=True, join_rate=5, join_window=60, account_age=7, alert_channel_id=ALERT_CHANNEL_ID)
    data.update(overrides)
    return AntiRaidSettings(**data)


def joins(n, age_days=365):
    return [JoinRecord(user_id=100 + i, joined_at=BASE_TS, account_age_days=age_days) for i in range(n)]


@pytest.fixture
def detector(db, clock):
    return RaidDetector(db, clock=clock)


@pytest.fixture
def scheduler():
    return MagicMock()


@pytest.fixture
def responder(db, scheduler, clock):
    return RaidResponder(db, scheduler, member_delay=0, ban_delay=0, clock=clock)


class TestRaidHeuristics:
    def test_volume_decides(self):
        assert check_for_raid(joins(5), join_rate=5, min_age_days=7) is True
        assert check_for_raid(joins(4, age_days=1), join_rate=5, min_age_days=7) is False

    def test_suspicious_factors(self, member_factory):
        member = member_factory(age_days=1, avatar=None, name="user12345")
        assert suspicious_factors(member, 1, 7) == ["young_account", "no_avatar", "suspicious_username"]
        assert suspicious_factors(member_factory(), 365, 7) == []


class TestRaidDetector:
    def test_five_quick_joins_is_a_raid(self, detector, member_factory, clock):
        results = []
        for i in range(5):
            clock.advance(2)
            results.append(detector.on_join(member_factory(200 + i), settings()).is_raid)
        assert results == [False, False, False, False, True]

    def test_three_young_joins_are_not_a_raid(self, detector, member_factory):
        for i in range(3):
            assessment = detector.on_join(member_factory(200 + i, age_days=1), settings())
        assert assessment.is_raid is False
        assert assessment.young_ratio == 1.0

    def test_window_expiry(self, detector, member_factory, clock):
        for i in range(4):
            detector.on_join(member_factory(200 + i), settings())
        clock.advance(61)
        assessment = detector.on_join(member_factory(300), settings())
        assert assessment.is_raid is False
        assert assessment.joins_in_window == 1

    def test_bypass_role(self, detector, db, member_factory):
        role = MagicMock()
        role.id = 99
        assessment = detector.on_join(member_factory(roles=[role]), settings(bypass_roles=[99]))
        assert assessment.bypassed is True
        assert detector.recent_joins(GUILD_ID) == []
        assert db.fetch_raid_events(GUILD_ID)[0]["join_source"] == "bypass_role"

    def test_join_is_logged(self, detector, db, member_factory):
        detector.on_join(member_factory(age_days=1, avatar=None), settings())
        row = db.fetch_raid_events(GUILD_ID)[0]
        assert row["event_type"] == "suspicious_member"
        assert row["action_type"] == "monitor"
        assert row["account_age_days"] == 1.0

    def test_sweep(self, detector, member_factory, clock):
        detector.on_join(member_factory(), settings())
        clock.advance(86401)
        assert detector.sweep() == 1
        assert detector.recent_joins(GUILD_ID) == []


class TestRaidResponder:
    @pytest.mark.asyncio
    async def test_lockdown_raises_verification(self, responder, db, scheduler, mock_guild, mock_alert_channel):
        raid_id = await responder.on_raid_detected(mock_guild, joins(5), settings(raid_action_duration=60))

        assert raid_id.startswith(f"raid_{GUILD_ID}_")
        assert mock_guild.edit.await_args.kwargs["verification_level"] == discord.VerificationLevel.highest
        assert scheduler.schedule.call_args.args[0] == 3600
        assert db.get_raid_state(GUILD_ID).active is True
        embed = mock_alert_channel.send.await_args.kwargs["embed"]
        assert embed.title == "RAID DETECTED"
        assert db.fetch_raid_events(GUILD_ID, event_type="raid_detected")[0]["raid_id"] == raid_id

    @pytest.mark.asyncio
    async def test_lockdown_skipped_when_already_highest(self, responder, scheduler, mock_guild):
        mock_guild.verification_level = discord.VerificationLevel.highest
        await responder.on_raid_detected(mock_guild, joins(5), settings())
        mock_guild.edit.assert_not_awaited()
        scheduler.schedule.assert_not_called()

    @pytest.mark.asyncio
    async def test_batch_kick_isolates_failures(self, responder, mock_guild, member_factory):
        members = {100 + i: member_factory(100 + i) for i in range(3)}
        members[101].kick.side_effect = discord.Forbidden(MagicMock(status=403, reason="Forbidden"), "nope")
        mock_guild.get_member = MagicMock(side_effect=members.get)

        await responder.on_raid_detected(mock_guild, joins(3), settings(raid_action="kick"))

        for member in members.values():
            member.kick.assert_awaited_once()
        assert await responder._kick_all(mock_guild, joins(3)) == 2

    @pytest.mark.asyncio
    async def test_temporary_ban_schedules_unbans(self, responder, scheduler, mock_guild, member_factory):
        members = {100 + i: member_factory(100 + i) for i in range(2)}
        mock_guild.get_member = MagicMock(side_effect=members.get)
        await responder.on_raid_detected(mock_guild, joins(2), settings(raid_action="ban", raid_action_duration=30))
        assert mock_guild.ban.await_count == 2
        assert scheduler.schedule.call_count == 2

    @pytest.mark.asyncio
    async def test_mute_all(self, responder, mock_guild, member_factory):
        member = member_factory(100)
        mock_guild.get_member = MagicMock(return_value=member)
        await responder.on_raid_detected(mock_guild, joins(1), settings(raid_action="mute", raid_action_duration=15))
        assert member.timeout.await_args.args[0] == timedelta(minutes=15)

    @pytest.mark.asyncio
    async def test_alert_only(self, responder, mock_guild, mock_alert_channel):
        await responder.on_raid_detected(mock_guild, joins(5), settings(raid_action="none"))
        mock_guild.edit.assert_not_awaited()
        mock_alert_channel.send.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_suspicious_member_auto_kick(self, responder, db, member_factory):
        member = member_factory(age_days=1, avatar=None)
        assessment = JoinAssessment(is_suspicious=True, suspicious_reasons=["young_account", "no_avatar"])

        assert await responder.handle_suspicious(member, assessment, settings()) is False
        member.kick.assert_not_awaited()

        assert await responder.handle_suspicious(member, assessment, settings(auto_kick=True)) is True
        member.kick.assert_awaited_once()
        assert db.fetch_raid_events(GUILD_ID)[0]["join_source"] == "auto_kick"
