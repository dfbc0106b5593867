"""Slash command guards."""
from __future__ import annotations
from typing import Callable, Awaitable, Any
from functools import wraps
import discord

from ..infrastructure.logging.structured_logging import warning as log_warning

GUILD_ONLY_MESSAGE = "This command only works inside a server."


def moderator_only(denied_message: str, log_event: str):
    """Let only moderators (see ``ModerationBot.is_moderator``) reach the command.

    Rejections answer ephemerally and log ``log_event``. Accepted calls are
    deferred ephemerally, so the wrapped command replies through followups.
    """
    def decorator(func: Callable[..., Awaitable[Any]]):
        @wraps(func)
        async def wrapper(interaction: discord.Interaction, **kwargs):  # type: ignore
            if interaction.guild is None:
                await interaction.response.send_message(GUILD_ONLY_MESSAGE, ephemeral=True)
                return None
            member = interaction.user if isinstance(interaction.user, discord.Member) else None
            is_moderator = getattr(interaction.client, 'is_moderator', None)
            if is_moderator is None or not is_moderator(member):
                await interaction.response.send_message(denied_message, ephemeral=True)
                log_warning(log_event, user_id=interaction.user.id, guild_id=interaction.guild.id)
                return None
            await interaction.response.defer(ephemeral=True)
            return await func(interaction, **kwargs)
        return wrapper
    return decorator

__all__ = ["moderator_only", "GUILD_ONLY_MESSAGE"]
