"""ActionExecutor dispatches a ledger decision to its handler & audits it."""
from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Optional
import discord

from .registry import find_handler
from .helpers import build_log_embed, build_safe_link_embed, post_notice
from ..interfaces import WarningStore
from ..models import ContentEvent, LedgerDecision, ViolationRecord
from ....infrastructure.logging.structured_logging import (
    info as log_info,
    warning as log_warning,
    error as log_error,
    debug as log_debug,
)


@dataclass
class ActionContext:
    store: WarningStore
    scheduler: object = None


class ActionExecutor:
    def __init__(self, store: WarningStore, scheduler=None):
        # side-effect: importing action modules populates the registry
        from . import warn, delete_message, timeout, kick, ban  # noqa: F401  # pylint: disable=unused-import
        self.ctx = ActionContext(store=store, scheduler=scheduler)

    async def apply(self, event: ContentEvent, rule, reason: str, decision: LedgerDecision) -> bool:
        handler = find_handler(decision.action)
        performed = False
        failure_reason: Optional[str] = None
        if not handler:
            log_warning('action.unknown', action=decision.action)
            failure_reason = 'unknown_action'
        else:
            try:
                performed, failure_reason = await handler.execute(event, rule, reason, decision, self.ctx)
            except Exception as e:  # noqa: BLE001
                log_error('action.execute.error', action=decision.action, error=str(e))
                performed = False
                failure_reason = 'exception'
        log_info(
            "action.applied",
            guild_id=event.guild_id,
            user_id=event.user_id,
            rule_id=rule.id,
            action=decision.action,
            performed=performed,
            failure_reason=failure_reason,
            edit=event.is_edit,
        )
        self._record(event, rule, reason, decision, performed, failure_reason)
        await self._audit(event, rule, reason, decision, performed)
        return performed

    def _record(self, event: ContentEvent, rule, reason: str, decision: LedgerDecision, performed: bool, failure_reason: Optional[str]) -> None:
        metadata = {
            'configured_action': rule.action_type,
            'downgraded': decision.downgraded,
            'performed': performed,
        }
        if failure_reason:
            metadata['failure_reason'] = failure_reason
        if event.is_edit and event.diff is not None:
            metadata.update(
                {
                    'edit': True,
                    'change_type': event.diff.change_type,
                    'before': event.diff.before,
                    'after': event.diff.after,
                }
            )
        record = ViolationRecord(
            guild_id=event.guild_id,
            user_id=event.user_id,
            rule_id=rule.id,
            rule_type=rule.trigger_type,
            rule_name=rule.name,
            reason=reason,
            action_taken=decision.action,
            message_content=event.content,
            channel_id=event.channel_id,
            message_id=event.message_id,
            warning_increment=0 if decision.action == 'delete' else decision.severity,
            total_warnings=decision.effective_count if decision.action != 'delete' else decision.previous_count,
            threshold=decision.threshold,
            severity=decision.severity_label,
            metadata=metadata,
        )
        try:
            self.ctx.store.record_violation(record)
        except sqlite3.Error as e:
            log_error("action.record_failed", guild_id=event.guild_id, user_id=event.user_id, error=str(e))

    async def _audit(self, event: ContentEvent, rule, reason: str, decision: LedgerDecision, performed: bool) -> None:
        if not rule.log_channel_id or event.message is None:
            return
        guild = getattr(event.message, 'guild', None)
        channel = guild.get_channel(rule.log_channel_id) if guild else None
        if channel is None:
            log_warning("action.log_channel_missing", guild_id=event.guild_id, channel_id=rule.log_channel_id)
            return
        try:
            await channel.send(embed=build_log_embed(event, rule, reason, decision, performed))
        except (discord.Forbidden, discord.HTTPException) as e:
            log_warning("action.log_channel_failed", channel_id=rule.log_channel_id, error=str(e))

    async def send_safe_link_notice(self, event: ContentEvent, count: int) -> None:
        if event.message is None:
            return
        if await post_notice(event.message, build_safe_link_embed(count)):
            log_debug("action.safe_link_notice", message_id=event.message_id, links=count)

__all__ = ["ActionExecutor", "ActionContext"]
