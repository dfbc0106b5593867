"""Policy domain models"""
from __future__ import annotations

import re
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

TriggerType = Literal["spam", "caps", "links", "invite_links", "profanity", "mention_spam"]
ActionType = Literal["warn", "delete", "mute", "kick", "ban"]
RaidAction = Literal["lockdown", "kick", "ban", "mute", "alert_only"]

# triggers whose threshold_value parameterizes the detector itself
_DETECTOR_THRESHOLD_TRIGGERS = {"spam", "caps", "mention_spam"}

_TRIGGER_ALIASES = {
    "invites": "invite_links",
    "invite": "invite_links",
    "link": "links",
    "mentions": "mention_spam",
}

_ACTION_ALIASES = {
    "timeout": "mute",
    "delete_message": "delete",
    "warn_user": "warn",
}

_REGEX_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}


class ModerationRule(BaseModel):
    """Single automod rule: one trigger mapped to one action."""
    id: int
    guild_id: Optional[int] = None
    name: str
    trigger_type: TriggerType
    threshold_value: Optional[int] = None
    action_type: ActionType = "warn"
    duration: Optional[int] = None  # minutes; mute length or temporary ban
    delete_message: bool = False
    log_channel_id: Optional[int] = None
    whitelist_channels: List[int] = Field(default_factory=list)
    whitelist_roles: List[int] = Field(default_factory=list)
    escalation_enabled: bool = True
    enabled: bool = True
    warning_threshold: Optional[int] = None

    @field_validator("trigger_type", mode="before")
    def normalize_trigger(cls, v):  # type: ignore[override]
        key = str(v or "").strip().lower()
        return _TRIGGER_ALIASES.get(key, key)

    @field_validator("action_type", mode="before")
    def normalize_action(cls, v):  # type: ignore[override]
        key = str(v or "warn").strip().lower()
        return _ACTION_ALIASES.get(key, key)

    @field_validator("threshold_value", "warning_threshold", "duration")
    def positive_or_none(cls, v):  # type: ignore[override]
        if v is not None and v <= 0:
            return None
        return v

    def detector_threshold(self, default: int) -> int:
        return self.threshold_value or default

    @property
    def escalation_threshold(self) -> int:
        """Warning count at which a harsh action stops being downgraded to warn."""
        if self.warning_threshold:
            return self.warning_threshold
        if self.trigger_type not in _DETECTOR_THRESHOLD_TRIGGERS and self.threshold_value:
            return self.threshold_value
        return 3

    def is_exempt(self, channel_id: int, role_ids) -> bool:
        if channel_id in self.whitelist_channels:
            return True
        return any(r in role_ids for r in self.whitelist_roles)


class ProfanityWord(BaseModel):
    word: str
    enabled: bool = True
    whole_word_only: bool = False
    case_sensitive: bool = False


class ProfanityPattern(BaseModel):
    pattern: str
    enabled: bool = True
    flags: str = "gi"

    def regex_flags(self) -> int:
        value = 0
        for ch in (self.flags or "").lower():
            value |= _REGEX_FLAGS.get(ch, 0)
        return value


class AntiRaidSettings(BaseModel):
    enabled: bool = False
    join_rate: int = 5
    join_window: int = 60  # seconds
    account_age: int = 7  # days
    raid_action: RaidAction = "lockdown"
    raid_action_duration: int = 5  # minutes
    alert_channel_id: Optional[int] = None
    auto_kick: bool = False
    delete_invite_spam: bool = True
    grace_period: int = 30  # minutes
    bypass_roles: List[int] = Field(default_factory=list)

    @field_validator("raid_action", mode="before")
    def map_raid_action(cls, v):  # type: ignore[override]
        key = str(v or "lockdown").strip().lower()
        if key in {"none", "alert", "alert_only", ""}:
            return "alert_only"
        return key

    @field_validator("join_rate", "join_window")
    def at_least_one(cls, v):  # type: ignore[override]
        if v < 1:
            raise ValueError("join_rate and join_window must be >= 1")
        return v

    @field_validator("account_age", "raid_action_duration", "grace_period")
    def non_negative(cls, v):  # type: ignore[override]
        return max(0, v)


class GuildPolicy(BaseModel):
    """Everything the engine reads for one guild."""
    rules: List[ModerationRule] = Field(default_factory=list)
    bypass_roles: List[int] = Field(default_factory=list)
    profanity_words: List[ProfanityWord] = Field(default_factory=list)
    profanity_patterns: List[ProfanityPattern] = Field(default_factory=list)
    anti_raid: AntiRaidSettings = Field(default_factory=AntiRaidSettings)

    @field_validator("profanity_words", mode="before")
    def expand_plain_words(cls, v):  # type: ignore[override]
        return [{"word": w} if isinstance(w, str) else w for w in (v or [])]

    @field_validator("profanity_patterns", mode="before")
    def expand_plain_patterns(cls, v):  # type: ignore[override]
        return [{"pattern": p} if isinstance(p, str) else p for p in (v or [])]

    @model_validator(mode="after")
    def unique_rule_ids(self):  # type: ignore[override]
        seen = set()
        for rule in self.rules:
            if rule.id in seen:
                raise ValueError(f"Duplicate rule id {rule.id}")
            seen.add(rule.id)
        return self


class ModerationPolicy(BaseModel):
    """Per-guild policies plus a default used for guilds not listed."""
    defaults: GuildPolicy = Field(default_factory=GuildPolicy)
    guilds: Dict[int, GuildPolicy] = Field(default_factory=dict)

    @model_validator(mode="after")
    def stamp_guild_ids(self):  # type: ignore[override]
        for gid, gp in self.guilds.items():
            for rule in gp.rules:
                rule.guild_id = gid
        return self

    def for_guild(self, guild_id: int) -> GuildPolicy:
        return self.guilds.get(guild_id, self.defaults)


__all__ = [
    'TriggerType', 'ActionType', 'RaidAction', 'ModerationRule', 'ProfanityWord', 'ProfanityPattern',
    'AntiRaidSettings', 'GuildPolicy', 'ModerationPolicy',
]
