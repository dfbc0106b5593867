"""Grace-period screening for freshly joined members.

A watch is registered on join and expires on its own after the configured
grace period. While it is live, the member's messages are screened for
invite links, mass mentions and shouting before the normal rules run.
"""
from __future__ import annotations

import re
import time
from typing import Callable, Dict, Optional, Tuple

import discord

from ..domain.moderation.actions.helpers import action_delete_message
from ..domain.moderation.models import AntiRaidLogEntry, ContentEvent, GraceScreenResult, NewMemberWatch
from ..infrastructure.logging.structured_logging import info as log_info, warning as log_warning
from .raid_service import RaidResponder, write_raid_log

GRACE_INVITE_PATTERN = re.compile(r"discord\.gg/|discordapp\.com/invite/", re.IGNORECASE)
MAX_GRACE_MENTIONS = 5
GRACE_CAPS_RATIO = 0.7

_VIOLATION_TEXT = {
    'invite_link': "Invite link spam",
    'mass_mentions': "Mass mentions",
    'excessive_caps': "Excessive caps",
}


class GracePeriodMonitor:
    def __init__(self, responder: RaidResponder, clock: Callable[[], float] = time.time):
        self.responder = responder
        self._clock = clock
        self._watches: Dict[Tuple[int, int], NewMemberWatch] = {}

    def register(self, guild_id: int, user_id: int, grace_minutes: int) -> Optional[NewMemberWatch]:
        if grace_minutes <= 0:
            return None
        now = self._clock()
        watch = NewMemberWatch(guild_id=guild_id, user_id=user_id, joined_at=now, expires_at=now + grace_minutes * 60)
        self._watches[(guild_id, user_id)] = watch
        log_info("grace.watch_started", guild_id=guild_id, user_id=user_id, minutes=grace_minutes)
        return watch

    def active_watch(self, guild_id: int, user_id: int) -> Optional[NewMemberWatch]:
        watch = self._watches.get((guild_id, user_id))
        if watch is None:
            return None
        if watch.expired(self._clock()):
            del self._watches[(guild_id, user_id)]
            return None
        return watch

    def is_watched(self, guild_id: int, user_id: int) -> bool:
        return self.active_watch(guild_id, user_id) is not None

    def release(self, guild_id: int, user_id: int) -> None:
        self._watches.pop((guild_id, user_id), None)

    @staticmethod
    def find_violations(event: ContentEvent, settings) -> Tuple[list, bool]:
        """Return ``(violations, should_delete)`` for a watched member's message."""
        content = event.content or ""
        violations = []
        should_delete = False
        if settings.delete_invite_spam and GRACE_INVITE_PATTERN.search(content.lower()):
            violations.append('invite_link')
            should_delete = True
        if len(set(event.mentioned_user_ids)) > MAX_GRACE_MENTIONS:
            violations.append('mass_mentions')
            should_delete = True
        if len(content) > 10 and sum(1 for ch in content if 'A' <= ch <= 'Z') / len(content) > GRACE_CAPS_RATIO:
            violations.append('excessive_caps')
        return violations, should_delete

    async def screen(self, event: ContentEvent, settings) -> GraceScreenResult:
        result = GraceScreenResult()
        if self.active_watch(event.guild_id, event.user_id) is None:
            return result
        violations, should_delete = self.find_violations(event, settings)
        if not violations:
            return result
        result.violations = violations
        log_warning("grace.violation", guild_id=event.guild_id, user_id=event.user_id, violations=violations)
        message = event.message
        if should_delete and message is not None:
            result.deleted = await action_delete_message(message, "grace period: " + ", ".join(violations))
        if settings.auto_kick and message is not None:
            result.kicked = await self._kick(event, message, violations, settings)
        return result

    async def _kick(self, event: ContentEvent, message, violations: list, settings) -> bool:
        member, guild = message.author, message.guild
        primary = violations[0]
        reason_text = _VIOLATION_TEXT.get(primary, primary)
        try:
            await member.kick(reason=f"Anti-raid protection: {reason_text} during grace period")
        except (discord.Forbidden, discord.HTTPException) as e:
            log_warning("grace.kick_failed", guild_id=event.guild_id, user_id=event.user_id, error=str(e))
            return False
        watch = self.active_watch(event.guild_id, event.user_id)
        self.release(event.guild_id, event.user_id)
        minutes_in = (self._clock() - watch.joined_at) / 60 if watch else None
        write_raid_log(
            self.responder.store,
            AntiRaidLogEntry(
                guild_id=event.guild_id,
                event_type='suspicious_member',
                user_id=event.user_id,
                user_tag=str(member),
                action_type='kick',
                member_count=getattr(guild, 'member_count', None),
                join_source=f"grace_violation_{primary}",
            ),
        )
        embed = discord.Embed(
            title="Grace Period Violation",
            description=f"<@{event.user_id}> was kicked for {reason_text.lower()} shortly after joining.",
            colour=discord.Colour.orange(),
        )
        embed.add_field(name="Violations", value=", ".join(_VIOLATION_TEXT.get(v, v) for v in violations), inline=False)
        if minutes_in is not None:
            embed.add_field(name="Time since join", value=f"{minutes_in:.1f} min", inline=True)
        await self.responder.send_alert(guild, settings, embed)
        log_info("grace.kicked", guild_id=event.guild_id, user_id=event.user_id, reason=primary)
        return True

    def sweep(self, now: Optional[float] = None) -> int:
        now = self._clock() if now is None else now
        expired = [k for k, w in self._watches.items() if w.expired(now)]
        for k in expired:
            del self._watches[k]
        return len(expired)


__all__ = ['GracePeriodMonitor', 'GRACE_INVITE_PATTERN', 'MAX_GRACE_MENTIONS']
