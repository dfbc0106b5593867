"""Translate discord.py objects into engine value objects."""
from __future__ import annotations

from typing import Optional
import discord

from ..domain.moderation.models import ContentEvent, EventKind


def event_from_message(message: discord.Message, previous_content: Optional[str] = None) -> ContentEvent:
    """Build a ContentEvent; passing ``previous_content`` marks it as an edit."""
    author = message.author
    stamp = message.edited_at if previous_content is not None and message.edited_at else message.created_at
    return ContentEvent(
        guild_id=message.guild.id,
        user_id=author.id,
        channel_id=message.channel.id,
        message_id=message.id,
        content=message.content or "",
        kind=EventKind.EDIT if previous_content is not None else EventKind.CREATE,
        previous_content=previous_content,
        role_ids=frozenset(r.id for r in getattr(author, 'roles', [])),
        mentioned_user_ids=frozenset(u.id for u in message.mentions),
        mentioned_role_ids=frozenset(r.id for r in message.role_mentions),
        timestamp=stamp.timestamp() if stamp else 0.0,
        message=message,
    )


def should_inspect(message: discord.Message) -> bool:
    """Guild messages from humans only."""
    return message.guild is not None and not message.author.bot

__all__ = ["event_from_message", "should_inspect"]
