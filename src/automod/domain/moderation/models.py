"""Value objects passed between the detection, escalation and action layers."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional


class EventKind(str, Enum):
    CREATE = "create"
    EDIT = "edit"


@dataclass(frozen=True)
class EditDiff:
    before: str
    after: str
    change_type: str


@dataclass
class ContentEvent:
    """A message create or edit, reduced to what the engine inspects.

    ``message`` is the platform handle (a discord.Message). Only action
    handlers touch it; detectors work on the plain fields.
    """
    guild_id: int
    user_id: int
    channel_id: int
    message_id: int
    content: str
    kind: EventKind = EventKind.CREATE
    previous_content: Optional[str] = None
    role_ids: FrozenSet[int] = frozenset()
    mentioned_user_ids: FrozenSet[int] = frozenset()
    mentioned_role_ids: FrozenSet[int] = frozenset()
    timestamp: float = field(default_factory=time.time)
    diff: Optional[EditDiff] = None
    message: Any = None

    @property
    def is_edit(self) -> bool:
        return self.kind is EventKind.EDIT


@dataclass(frozen=True)
class RuleMatch:
    rule: Any  # ModerationRule
    reason: str


@dataclass(frozen=True)
class LedgerDecision:
    """Outcome of WarningLedger.record_violation."""
    action: str
    count: int
    threshold: int
    severity: int
    previous_count: int
    downgraded: bool = False

    @property
    def effective_count(self) -> int:
        return self.previous_count + self.severity

    @property
    def severity_label(self) -> str:
        if self.action == 'warn':
            return 'high' if self.severity > 1 else 'medium'
        if self.action == 'delete':
            return 'low'
        if self.action == 'mute':
            return 'high'
        return 'extreme'


@dataclass
class ViolationRecord:
    guild_id: int
    user_id: int
    rule_id: Optional[int]
    rule_type: str
    rule_name: str
    reason: str
    action_taken: str
    message_content: str = ""
    channel_id: Optional[int] = None
    message_id: Optional[int] = None
    warning_increment: int = 1
    total_warnings: int = 0
    threshold: int = 0
    moderator_id: Optional[int] = None
    is_auto_mod: bool = True
    severity: str = "medium"
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class JoinRecord:
    user_id: int
    joined_at: float
    account_age_days: float
    user_tag: str = ""


@dataclass
class JoinAssessment:
    is_raid: bool = False
    is_suspicious: bool = False
    bypassed: bool = False
    joins_in_window: int = 0
    young_ratio: float = 0.0
    suspicious_reasons: List[str] = field(default_factory=list)
    recent_joins: List[JoinRecord] = field(default_factory=list)


@dataclass
class AntiRaidLogEntry:
    guild_id: int
    event_type: str
    user_id: Optional[int] = None
    user_tag: Optional[str] = None
    raid_id: Optional[str] = None
    account_age_days: Optional[float] = None
    join_count: Optional[int] = None
    young_ratio: Optional[float] = None
    action_type: str = "none"
    action_duration: Optional[int] = None
    member_count: Optional[int] = None
    verification_level: Optional[int] = None
    join_source: str = "direct"


@dataclass(frozen=True)
class RaidState:
    guild_id: int
    active: bool
    started_at: Optional[int] = None


@dataclass(frozen=True)
class NewMemberWatch:
    guild_id: int
    user_id: int
    joined_at: float
    expires_at: float

    def expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass
class GraceScreenResult:
    violations: List[str] = field(default_factory=list)
    deleted: bool = False
    kicked: bool = False

    @property
    def flagged(self) -> bool:
        return bool(self.violations)


__all__ = [
    'EventKind', 'EditDiff', 'ContentEvent', 'RuleMatch', 'LedgerDecision', 'ViolationRecord',
    'JoinRecord', 'JoinAssessment', 'AntiRaidLogEntry', 'RaidState', 'NewMemberWatch', 'GraceScreenResult',
]
