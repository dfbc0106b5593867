"""ModerationBot Discord client definition."""
from __future__ import annotations

import logging
import discord
from discord import app_commands

from ..config.settings import load_config, AutomodConfig
from ..domain.policy.loader import load_policy
from ..domain.policy.provider import PolicyConfigProvider
from ..infrastructure.persistence.db_core import ModerationDB
from ..infrastructure.logging.structured_logging import init_logging, LOGGER_NAME
from ..services.provider_factory import build_engine

CONFIG: AutomodConfig = load_config()
init_logging(CONFIG.log_level, json_output=CONFIG.log_json)
logger = logging.getLogger(LOGGER_NAME)

INTENTS = discord.Intents.default()
INTENTS.message_content = True
INTENTS.members = True


class ModerationBot(discord.Client):
    """Discord client wiring policy, stores, the automod engine and slash commands."""
    def __init__(self, config: AutomodConfig = CONFIG):
        super().__init__(intents=INTENTS)
        self.tree = app_commands.CommandTree(self)
        self.config = config
        self.policy = self._load_policy()
        self.policy_provider = PolicyConfigProvider(self.policy)
        self.db = ModerationDB(config.sqlite_path, warning_decay_seconds=config.warning_decay_minutes * 60)
        self.engine = build_engine(config, self.policy_provider, self.db)
        self.test_guild_id: int | None = config.test_guild_id or None
        self.moderator_role_names = config.moderator_role_names

    def is_moderator(self, member: discord.Member | None) -> bool:
        if member is None:
            return False
        guild_owner_id = getattr(getattr(member, 'guild', None), 'owner_id', None)
        if guild_owner_id and member.id == guild_owner_id:
            return True
        member_role_names = {role.name.lower() for role in getattr(member, 'roles', [])}
        if not self.moderator_role_names.isdisjoint(member_role_names):
            return True
        perms = getattr(member, 'guild_permissions', None)
        return bool(getattr(perms, 'manage_guild', False))

    def _load_policy(self):
        try:
            return load_policy(self.config.policy_file)
        except (FileNotFoundError, ValueError) as e:
            logger.error("Failed to load policy: %s (automod rules disabled)", e)
            return None

    def reload_policy(self) -> bool:
        policy = self._load_policy()
        if policy is None:
            return False
        self.policy = policy
        self.policy_provider.replace(policy)
        return True

    async def setup_hook(self) -> None:
        self.engine.start()
        if self.test_guild_id is None:
            await self.tree.sync()
            logger.info("Global slash commands sync requested (propagation can lag)")
            return
        # guild-scoped sync applies instantly
        target = discord.Object(id=self.test_guild_id)
        self.tree.copy_global_to(guild=target)
        synced = await self.tree.sync(guild=target)
        logger.info("Synced %d slash commands to test guild %s", len(synced), self.test_guild_id)

    async def close(self) -> None:
        await self.engine.stop()
        await super().close()
        self.db.close()

bot = ModerationBot()

__all__ = ["ModerationBot", "bot", "CONFIG"]
