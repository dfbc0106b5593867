"""Public behavioral contracts for moderation extension points."""
from __future__ import annotations

from typing import Any, List, Protocol, Tuple, runtime_checkable


@runtime_checkable
class Action(Protocol):
    def can_handle(self, action: str) -> bool: ...  # noqa: D401,E701
    async def execute(self, event, rule, reason: str, decision, ctx) -> Tuple[bool, str | None]: ...


@runtime_checkable
class ReputationProvider(Protocol):
    name: str
    async def check(self, url: str) -> Any: ...  # -> ProviderOutcome


@runtime_checkable
class ConfigProvider(Protocol):
    async def get_rules(self, guild_id: int) -> List[Any]: ...
    async def get_bypass_roles(self, guild_id: int) -> List[int]: ...
    async def get_profanity_words(self, guild_id: int) -> List[Any]: ...
    async def get_profanity_patterns(self, guild_id: int) -> List[Any]: ...
    async def get_antiraid_settings(self, guild_id: int) -> Any: ...


class WarningStore(Protocol):
    def get_warning_count(self, guild_id: int, user_id: int, rule_type: str) -> int: ...
    def increment_warning_count(self, guild_id: int, user_id: int, rule_type: str, amount: int = 1) -> int: ...
    def reset_warning_count(self, guild_id: int, user_id: int, rule_type: str) -> None: ...
    def record_violation(self, record) -> int: ...


class BlacklistStore(Protocol):
    def get_blacklisted_domains(self, guild_id: int) -> List[str]: ...
    def add_to_blacklist(self, guild_id: int, domain: str, reason: str) -> bool: ...


class RaidStore(Protocol):
    def log_raid_event(self, entry) -> int: ...
    def set_raid_active(self, guild_id: int, started_at: int | None = None) -> None: ...


__all__ = ["Action", "ReputationProvider", "ConfigProvider", "WarningStore", "BlacklistStore", "RaidStore"]
