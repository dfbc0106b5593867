"""Moderation engine orchestrator.

High-level responsibilities:
 1. Screen messages from members still inside their grace period.
 2. Skip members holding an automod bypass role.
 3. Match the first applicable rule (create and edit events share one path).
 4. Run the ledger decision through the action executor.
 5. Feed member joins through raid detection, raid response and grace
    registration.

One engine instance owns every in-memory window (spam, joins, watches)
and the hourly hygiene sweep, so the Discord event handlers stay thin.
"""
from __future__ import annotations

import asyncio
import contextlib
import time
from typing import Callable, Optional

from ..domain.detection.content import classify_change
from ..domain.detection.rule_engine import RuleEngine
from ..domain.detection.spam_tracker import SpamWindowTracker
from ..domain.moderation.actions.runner import ActionExecutor
from ..domain.moderation.interfaces import ConfigProvider
from ..domain.moderation.models import ContentEvent, EditDiff, JoinAssessment, RuleMatch
from ..infrastructure.logging.structured_logging import (
    debug as log_debug,
    error as log_error,
    info as log_info,
)
from .escalation_service import WarningLedger
from .grace_period import GracePeriodMonitor
from .raid_service import RaidDetector, RaidResponder
from .scheduler import DeferredTasks


class ModerationEngine:
    def __init__(
        self,
        config: ConfigProvider,
        db,
        reputation,
        *,
        hygiene_interval: float = 3600,
        member_delay: float = 0.1,
        ban_delay: float = 0.2,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config
        self.db = db
        self.hygiene_interval = hygiene_interval
        self.scheduler = DeferredTasks()
        self.spam = SpamWindowTracker(clock=clock)
        self.executor = ActionExecutor(store=db, scheduler=self.scheduler)
        self.ledger = WarningLedger(db)
        self.rules = RuleEngine(config, reputation, self.spam, on_links_verified=self.executor.send_safe_link_notice)
        self.raid_detector = RaidDetector(db, clock=clock)
        self.raid_responder = RaidResponder(db, self.scheduler, member_delay=member_delay, ban_delay=ban_delay, clock=clock)
        self.grace = GracePeriodMonitor(self.raid_responder, clock=clock)
        self._hygiene_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        if self._hygiene_task is None or self._hygiene_task.done():
            self._hygiene_task = asyncio.create_task(self._hygiene_loop())
            log_info("engine.started", hygiene_interval=self.hygiene_interval)

    async def stop(self) -> None:
        task, self._hygiene_task = self._hygiene_task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            log_info("engine.stopped")

    @property
    def running(self) -> bool:
        return self._hygiene_task is not None and not self._hygiene_task.done()

    async def _hygiene_loop(self) -> None:
        while True:
            await asyncio.sleep(self.hygiene_interval)
            self.sweep()

    def sweep(self) -> dict:
        stats = {
            'spam_keys': self.spam.sweep(),
            'joins': self.raid_detector.sweep(),
            'watches': self.grace.sweep(),
        }
        log_debug("engine.sweep", **stats)
        return stats

    # ------------------------------------------------------------------
    # content events
    # ------------------------------------------------------------------
    async def handle_message(self, event: ContentEvent) -> Optional[RuleMatch]:
        """Top-level entry for message create and edit events."""
        try:
            return await self._process(event)
        except Exception as e:  # noqa: BLE001
            log_error(
                "engine.message_failed",
                guild_id=event.guild_id,
                user_id=event.user_id,
                message_id=event.message_id,
                kind=event.kind.value,
                error=str(e),
            )
            return None

    async def _process(self, event: ContentEvent) -> Optional[RuleMatch]:
        if event.is_edit and event.diff is None:
            event.diff = EditDiff(
                before=event.previous_content or "",
                after=event.content,
                change_type=classify_change(event.previous_content, event.content),
            )

        if self.grace.is_watched(event.guild_id, event.user_id):
            settings = await self.config.get_antiraid_settings(event.guild_id)
            screened = await self.grace.screen(event, settings)
            if screened.kicked or screened.deleted:
                return None

        bypass = await self.config.get_bypass_roles(event.guild_id)
        if bypass and set(bypass).intersection(event.role_ids):
            log_debug("engine.bypass_role", guild_id=event.guild_id, user_id=event.user_id)
            return None

        match = await self.rules.evaluate(event)
        if match is None:
            return None
        log_info(
            "moderation.rule_match",
            guild_id=event.guild_id,
            user_id=event.user_id,
            rule_id=match.rule.id,
            rule=match.rule.name,
            trigger=match.rule.trigger_type,
            kind=event.kind.value,
            change_type=event.diff.change_type if event.diff else None,
        )
        decision = self.ledger.record_violation(event.guild_id, event.user_id, match.rule)
        await self.executor.apply(event, match.rule, match.reason, decision)
        return match

    # ------------------------------------------------------------------
    # member joins
    # ------------------------------------------------------------------
    async def handle_member_join(self, member) -> Optional[JoinAssessment]:
        guild = member.guild
        try:
            settings = await self.config.get_antiraid_settings(guild.id)
            if not settings.enabled:
                return None
            assessment = self.raid_detector.on_join(member, settings)
            if assessment.bypassed:
                return assessment
            if assessment.is_raid:
                await self.raid_responder.on_raid_detected(guild, assessment.recent_joins, settings)
            if assessment.is_suspicious:
                if await self.raid_responder.handle_suspicious(member, assessment, settings):
                    return assessment
            if settings.grace_period > 0:
                self.grace.register(guild.id, member.id, settings.grace_period)
            return assessment
        except Exception as e:  # noqa: BLE001
            log_error("engine.join_failed", guild_id=getattr(guild, 'id', None), user_id=getattr(member, 'id', None), error=str(e))
            return None

    def clear_raid(self, guild_id: int) -> bool:
        """Explicitly end a raid; raid state never clears on its own."""
        cleared = self.db.clear_raid(guild_id)
        if cleared:
            log_info("antiraid.raid_cleared", guild_id=guild_id)
        return cleared


__all__ = ['ModerationEngine']
