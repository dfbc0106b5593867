"""Read-only config provider over a loaded ModerationPolicy.

The engine only ever awaits these accessors, so a database or HTTP backed
provider can replace this one without touching callers. A missing policy
reads as "no rules, default anti-raid settings".
"""
from __future__ import annotations

from typing import List, Optional

from .models import AntiRaidSettings, GuildPolicy, ModerationPolicy, ModerationRule, ProfanityPattern, ProfanityWord


class PolicyConfigProvider:
    def __init__(self, policy: Optional[ModerationPolicy] = None):
        self.policy = policy

    def replace(self, policy: Optional[ModerationPolicy]) -> None:
        self.policy = policy

    def _guild(self, guild_id: int) -> GuildPolicy:
        if self.policy is None:
            return GuildPolicy()
        return self.policy.for_guild(guild_id)

    async def get_rules(self, guild_id: int) -> List[ModerationRule]:
        return list(self._guild(guild_id).rules)

    async def get_bypass_roles(self, guild_id: int) -> List[int]:
        return list(self._guild(guild_id).bypass_roles)

    async def get_profanity_words(self, guild_id: int) -> List[ProfanityWord]:
        return list(self._guild(guild_id).profanity_words)

    async def get_profanity_patterns(self, guild_id: int) -> List[ProfanityPattern]:
        return list(self._guild(guild_id).profanity_patterns)

    async def get_antiraid_settings(self, guild_id: int) -> AntiRaidSettings:
        return self._guild(guild_id).anti_raid


__all__ = ['PolicyConfigProvider']
