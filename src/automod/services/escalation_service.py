"""Warning ledger & escalation.

Turns a rule match into the action that actually runs and keeps the
per-member, per-rule-type warning counter in step with it:
 - harsh actions (mute/kick/ban) are downgraded to ``warn`` until the
   member's count plus this violation's severity reaches the threshold;
 - ``warn`` increments the counter by the severity;
 - ``delete`` leaves it untouched;
 - a harsh action that fires resets it to zero.

Design goals:
 - Pure function core for easy unit testing.
 - Service wrapper that depends only on the warning store protocol.
"""
from __future__ import annotations

import sqlite3
from typing import Tuple

from ..domain.moderation.interfaces import WarningStore
from ..domain.moderation.models import LedgerDecision
from ..infrastructure.logging.structured_logging import error as log_error, info as log_info

HARSH_ACTIONS = {"mute", "kick", "ban"}


def resolve_action(action: str, current_count: int, severity: int, threshold: int, escalation_enabled: bool = True) -> Tuple[str, bool]:
    """Return ``(action_to_run, downgraded)`` for a violation.

    A harsh action is downgraded to ``warn`` while ``current_count + severity``
    stays below ``threshold``.
    """
    if escalation_enabled and action in HARSH_ACTIONS and current_count + severity < threshold:
        return "warn", True
    return action, False


class WarningLedger:
    def __init__(self, store: WarningStore):
        self._store = store

    def _current(self, guild_id: int, user_id: int, rule_type: str) -> int:
        try:
            return self._store.get_warning_count(guild_id, user_id, rule_type)
        except sqlite3.Error as e:
            log_error("ledger.read_failed", guild_id=guild_id, user_id=user_id, rule_type=rule_type, error=str(e))
            return 0

    def record_violation(self, guild_id: int, user_id: int, rule, severity: int = 1) -> LedgerDecision:
        severity = max(1, int(severity))
        threshold = rule.escalation_threshold
        current = self._current(guild_id, user_id, rule.trigger_type)
        action, downgraded = resolve_action(rule.action_type, current, severity, threshold, rule.escalation_enabled)
        count = current
        try:
            if action == "warn":
                count = self._store.increment_warning_count(guild_id, user_id, rule.trigger_type, severity)
            elif action in HARSH_ACTIONS:
                self._store.reset_warning_count(guild_id, user_id, rule.trigger_type)
                count = 0
        except sqlite3.Error as e:
            log_error("ledger.write_failed", guild_id=guild_id, user_id=user_id, action=action, error=str(e))
            if action == "warn":
                count = current + severity
            elif action in HARSH_ACTIONS:
                count = 0
        decision = LedgerDecision(
            action=action,
            count=count,
            threshold=threshold,
            severity=severity,
            previous_count=current,
            downgraded=downgraded,
        )
        log_info(
            "ledger.decision",
            guild_id=guild_id,
            user_id=user_id,
            rule_id=rule.id,
            rule_type=rule.trigger_type,
            configured=rule.action_type,
            action=action,
            count=count,
            threshold=threshold,
            downgraded=downgraded,
        )
        return decision


__all__ = ['resolve_action', 'WarningLedger', 'HARSH_ACTIONS']
