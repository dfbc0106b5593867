"""Join-rate raid detection and raid response.

RaidDetector keeps a per-guild window of recent joins and classifies each
new member; RaidResponder runs the configured batch action once a raid is
detected and handles individually suspicious accounts.
"""
from __future__ import annotations

import asyncio
import re
import sqlite3
import time
from collections import defaultdict
from datetime import timedelta
from typing import Callable, Dict, List, Optional

import discord

from ..domain.moderation.interfaces import RaidStore
from ..domain.moderation.models import AntiRaidLogEntry, JoinAssessment, JoinRecord
from ..domain.moderation.actions.helpers import MAX_TIMEOUT_MINUTES
from ..infrastructure.logging.structured_logging import (
    error as log_error,
    info as log_info,
    warning as log_warning,
)
from ..utils.format_utils import format_account_age
from .scheduler import DeferredTasks

YOUNG_RATIO_CUTOFF = 0.6
JOIN_HISTORY_MAX_AGE = 24 * 60 * 60
ALERT_JOINER_LIMIT = 10
RAID_REASON = "Raid protection - suspicious join pattern"
_BOT_NAME_PATTERNS = (re.compile(r"\d{4,}$"), re.compile(r"^user\d+"))


def account_age_days(member, now: float) -> float:
    created = getattr(member, 'created_at', None)
    if created is None:
        return 0.0
    return max(0.0, (now - created.timestamp()) / 86400)


def verification_value(level) -> Optional[int]:
    if level is None:
        return None
    return int(getattr(level, 'value', level))


def suspicious_factors(member, age_days: float, min_age_days: int) -> List[str]:
    factors = []
    if age_days < min_age_days:
        factors.append('young_account')
    if getattr(member, 'avatar', None) is None:
        factors.append('no_avatar')
    username = (getattr(member, 'name', '') or '').lower()
    if any(p.search(username) for p in _BOT_NAME_PATTERNS):
        factors.append('suspicious_username')
    return factors


def check_for_raid(joins: List[JoinRecord], join_rate: int, min_age_days: int) -> bool:
    """Volume decides: the young-account ratio alone never triggers a raid."""
    if len(joins) < join_rate:
        return False
    young = sum(1 for j in joins if j.account_age_days < min_age_days)
    young_ratio = young / len(joins)
    return young_ratio > YOUNG_RATIO_CUTOFF or len(joins) >= join_rate


def _young_ratio(joins: List[JoinRecord], min_age_days: int) -> float:
    if not joins:
        return 0.0
    return sum(1 for j in joins if j.account_age_days < min_age_days) / len(joins)


def write_raid_log(store: RaidStore, entry: AntiRaidLogEntry) -> None:
    try:
        store.log_raid_event(entry)
    except sqlite3.Error as e:
        log_error("antiraid.log_failed", guild_id=entry.guild_id, event_type=entry.event_type, error=str(e))


class RaidDetector:
    def __init__(self, store: RaidStore, clock: Callable[[], float] = time.time):
        self.store = store
        self._clock = clock
        self._joins: Dict[int, List[JoinRecord]] = defaultdict(list)

    def recent_joins(self, guild_id: int) -> List[JoinRecord]:
        return list(self._joins.get(guild_id, []))

    def on_join(self, member, settings) -> JoinAssessment:
        guild = member.guild
        now = self._clock()
        age = account_age_days(member, now)
        role_ids = {getattr(r, 'id', None) for r in getattr(member, 'roles', [])}
        if settings.bypass_roles and role_ids.intersection(settings.bypass_roles):
            write_raid_log(
                self.store,
                AntiRaidLogEntry(
                    guild_id=guild.id,
                    event_type='legitimate_join',
                    user_id=member.id,
                    user_tag=str(member),
                    account_age_days=round(age, 1),
                    member_count=getattr(guild, 'member_count', None),
                    verification_level=verification_value(getattr(guild, 'verification_level', None)),
                    join_source='bypass_role',
                ),
            )
            log_info("antiraid.bypass", guild_id=guild.id, user_id=member.id)
            return JoinAssessment(bypassed=True)

        # mutate the window before any await so concurrent joins see it
        window = self._joins[guild.id]
        window.append(JoinRecord(user_id=member.id, joined_at=now, account_age_days=age, user_tag=str(member)))
        cutoff = now - settings.join_window
        window[:] = [j for j in window if j.joined_at > cutoff]

        is_raid = check_for_raid(window, settings.join_rate, settings.account_age)
        factors = suspicious_factors(member, age, settings.account_age)
        is_suspicious = len(factors) >= 2
        ratio = _young_ratio(window, settings.account_age)

        write_raid_log(
            self.store,
            AntiRaidLogEntry(
                guild_id=guild.id,
                event_type='suspicious_member' if is_suspicious else 'legitimate_join',
                user_id=member.id,
                user_tag=str(member),
                account_age_days=round(age, 1),
                join_count=len(window),
                young_ratio=round(ratio, 2),
                action_type='monitor' if is_suspicious else 'none',
                member_count=getattr(guild, 'member_count', None),
                verification_level=verification_value(getattr(guild, 'verification_level', None)),
                join_source='direct',
            ),
        )
        log_info(
            "antiraid.join",
            guild_id=guild.id,
            user_id=member.id,
            age_days=round(age, 1),
            joins_in_window=len(window),
            young_ratio=round(ratio, 2),
            raid=is_raid,
            suspicious=is_suspicious,
        )
        return JoinAssessment(
            is_raid=is_raid,
            is_suspicious=is_suspicious,
            joins_in_window=len(window),
            young_ratio=ratio,
            suspicious_reasons=factors,
            recent_joins=list(window),
        )

    def sweep(self, max_age: float = JOIN_HISTORY_MAX_AGE, now: Optional[float] = None) -> int:
        now = self._clock() if now is None else now
        cutoff = now - max_age
        removed = 0
        for gid in list(self._joins):
            kept = [j for j in self._joins[gid] if j.joined_at > cutoff]
            removed += len(self._joins[gid]) - len(kept)
            if kept:
                self._joins[gid] = kept
            else:
                del self._joins[gid]
        return removed


class RaidResponder:
    def __init__(
        self,
        store: RaidStore,
        scheduler: DeferredTasks,
        member_delay: float = 0.1,
        ban_delay: float = 0.2,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.scheduler = scheduler
        self.member_delay = member_delay
        self.ban_delay = ban_delay
        self._clock = clock

    async def send_alert(self, guild, settings, embed: discord.Embed) -> bool:
        if not settings.alert_channel_id:
            return False
        channel = guild.get_channel(settings.alert_channel_id)
        if channel is None:
            log_warning("antiraid.alert_channel_missing", guild_id=guild.id, channel_id=settings.alert_channel_id)
            return False
        try:
            await channel.send(embed=embed)
            return True
        except (discord.Forbidden, discord.HTTPException) as e:
            log_warning("antiraid.alert_failed", guild_id=guild.id, error=str(e))
            return False

    def _raid_embed(self, guild, joins: List[JoinRecord], settings) -> discord.Embed:
        young = sum(1 for j in joins if j.account_age_days < settings.account_age)
        embed = discord.Embed(
            title="RAID DETECTED",
            description=(
                f"**Server:** {guild.name}\n"
                f"**Recent Joins:** {len(joins)}\n"
                f"**Young Accounts:** {young}\n"
                f"**Time Window:** Last {settings.join_window} seconds\n"
                f"**Response:** {settings.raid_action}"
            ),
            colour=discord.Colour.red(),
        )
        listed = joins[-ALERT_JOINER_LIMIT:]
        embed.add_field(
            name="Recent Joiners",
            value="\n".join(f"<@{j.user_id}> ({format_account_age(j.account_age_days)})" for j in listed) or "None",
            inline=False,
        )
        return embed

    async def on_raid_detected(self, guild, joins: List[JoinRecord], settings) -> str:
        now = self._clock()
        raid_id = f"raid_{guild.id}_{int(now * 1000)}"
        action = settings.raid_action
        duration = settings.raid_action_duration
        log_warning("antiraid.raid_detected", guild_id=guild.id, raid_id=raid_id, joins=len(joins), action=action)
        write_raid_log(
            self.store,
            AntiRaidLogEntry(
                guild_id=guild.id,
                event_type='raid_detected',
                raid_id=raid_id,
                join_count=len(joins),
                young_ratio=round(_young_ratio(joins, settings.account_age), 2),
                action_type=action,
                action_duration=duration,
                member_count=getattr(guild, 'member_count', None),
                verification_level=verification_value(getattr(guild, 'verification_level', None)),
            ),
        )
        await self.send_alert(guild, settings, self._raid_embed(guild, joins, settings))

        if action == 'lockdown':
            await self._lockdown(guild, duration)
        elif action == 'kick':
            await self._kick_all(guild, joins)
        elif action == 'ban':
            await self._ban_all(guild, joins, duration)
        elif action == 'mute':
            await self._mute_all(guild, joins, duration)

        try:
            self.store.set_raid_active(guild.id, int(now))
        except sqlite3.Error as e:
            log_error("antiraid.state_write_failed", guild_id=guild.id, error=str(e))
        return raid_id

    async def _lockdown(self, guild, duration_minutes: int) -> bool:
        previous = guild.verification_level
        target = discord.VerificationLevel.highest
        if (verification_value(previous) or 0) >= target.value:
            log_info("antiraid.lockdown_skipped", guild_id=guild.id, level=verification_value(previous))
            return False
        try:
            await guild.edit(verification_level=target, reason="Anti-raid protection: Server lockdown")
        except (discord.Forbidden, discord.HTTPException) as e:
            log_error("antiraid.lockdown_failed", guild_id=guild.id, error=str(e))
            return False
        log_info("antiraid.lockdown", guild_id=guild.id, previous=verification_value(previous), minutes=duration_minutes)

        async def _restore():
            await guild.edit(verification_level=previous, reason="Anti-raid protection: Lockdown expired")

        self.scheduler.schedule(duration_minutes * 60, _restore, label=f"lockdown_restore:{guild.id}")
        return True

    async def _kick_all(self, guild, joins: List[JoinRecord]) -> int:
        done = 0
        for join in joins:
            member = guild.get_member(join.user_id)
            if member is not None:
                try:
                    await member.kick(reason=RAID_REASON)
                    done += 1
                    log_info("antiraid.kicked", guild_id=guild.id, user_id=join.user_id)
                except (discord.Forbidden, discord.HTTPException) as e:
                    log_warning("antiraid.kick_failed", guild_id=guild.id, user_id=join.user_id, error=str(e))
            await asyncio.sleep(self.member_delay)
        return done

    async def _ban_all(self, guild, joins: List[JoinRecord], duration_minutes: int) -> int:
        done = 0
        for join in joins:
            member = guild.get_member(join.user_id)
            if member is not None:
                try:
                    await guild.ban(member, reason=RAID_REASON, delete_message_seconds=24 * 60 * 60)
                    done += 1
                    log_info("antiraid.banned", guild_id=guild.id, user_id=join.user_id)
                    if duration_minutes > 0:
                        self.scheduler.schedule(
                            duration_minutes * 60,
                            self._unban_job(guild, join.user_id),
                            label=f"raid_unban:{guild.id}:{join.user_id}",
                        )
                except (discord.Forbidden, discord.HTTPException) as e:
                    log_warning("antiraid.ban_failed", guild_id=guild.id, user_id=join.user_id, error=str(e))
            await asyncio.sleep(self.ban_delay)
        return done

    @staticmethod
    def _unban_job(guild, user_id: int):
        async def _unban():
            await guild.unban(discord.Object(id=user_id), reason="Anti-raid protection: Temporary ban expired")
        return _unban

    async def _mute_all(self, guild, joins: List[JoinRecord], duration_minutes: int) -> int:
        minutes = min(max(1, duration_minutes), MAX_TIMEOUT_MINUTES)
        done = 0
        for join in joins:
            member = guild.get_member(join.user_id)
            if member is not None:
                try:
                    await member.timeout(timedelta(minutes=minutes), reason=RAID_REASON)
                    done += 1
                    log_info("antiraid.muted", guild_id=guild.id, user_id=join.user_id, minutes=minutes)
                except (discord.Forbidden, discord.HTTPException) as e:
                    log_warning("antiraid.mute_failed", guild_id=guild.id, user_id=join.user_id, error=str(e))
            await asyncio.sleep(self.member_delay)
        return done

    async def handle_suspicious(self, member, assessment: JoinAssessment, settings) -> bool:
        """Kick a suspicious account when auto-kick is on; returns True if kicked."""
        if not settings.auto_kick:
            return False
        guild = member.guild
        try:
            await member.kick(reason="Auto-kick: Suspicious account detected by anti-raid protection")
        except (discord.Forbidden, discord.HTTPException) as e:
            log_warning("antiraid.suspicious_kick_failed", guild_id=guild.id, user_id=member.id, error=str(e))
            return False
        age = account_age_days(member, self._clock())
        write_raid_log(
            self.store,
            AntiRaidLogEntry(
                guild_id=guild.id,
                event_type='suspicious_member',
                user_id=member.id,
                user_tag=str(member),
                account_age_days=round(age, 1),
                join_count=assessment.joins_in_window,
                action_type='kick',
                member_count=getattr(guild, 'member_count', None),
                join_source='auto_kick',
            ),
        )
        embed = discord.Embed(
            title="Suspicious Account Kicked",
            description=f"<@{member.id}> ({age:.1f}d old) was removed on join.",
            colour=discord.Colour.orange(),
        )
        embed.add_field(name="Signals", value=", ".join(assessment.suspicious_reasons) or "n/a", inline=False)
        await self.send_alert(guild, settings, embed)
        log_info("antiraid.suspicious_kicked", guild_id=guild.id, user_id=member.id)
        return True


__all__ = [
    'RaidDetector', 'RaidResponder', 'write_raid_log', 'check_for_raid', 'suspicious_factors', 'account_age_days',
    'YOUNG_RATIO_CUTOFF', 'RAID_REASON',
]
