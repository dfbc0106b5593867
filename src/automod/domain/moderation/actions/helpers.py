"""Shared helper functions for moderation actions.

Embed builders plus the Discord calls every handler needs (delete, DM,
timeout, permission checks). Discord failures are logged here and turned
into ``False`` so one failed side effect never aborts its siblings.
"""
from __future__ import annotations

from datetime import timedelta
from typing import Optional
import discord

from ..models import ContentEvent, LedgerDecision
from ....infrastructure.logging.structured_logging import info as log_info, warning as log_warning, error as log_error
from ....utils.format_utils import truncate

MAX_TIMEOUT_MINUTES = 28 * 24 * 60
DEFAULT_MUTE_MINUTES = 5

COLOR_WARN = discord.Colour.orange()
COLOR_DELETE = discord.Colour.gold()
COLOR_MUTE = discord.Colour.dark_orange()
COLOR_KICK = discord.Colour.red()
COLOR_BAN = discord.Colour.dark_red()
COLOR_SAFE = discord.Colour.green()
COLOR_LOG = discord.Colour.blurple()

ACTION_COLORS = {
    'warn': COLOR_WARN,
    'delete': COLOR_DELETE,
    'mute': COLOR_MUTE,
    'kick': COLOR_KICK,
    'ban': COLOR_BAN,
}


def clamp_timeout_minutes(minutes: Optional[int]) -> int:
    if not minutes or minutes <= 0:
        minutes = DEFAULT_MUTE_MINUTES
    return min(int(minutes), MAX_TIMEOUT_MINUTES)


def has_permission(guild, permission: str) -> bool:
    me = getattr(guild, 'me', None)
    perms = getattr(me, 'guild_permissions', None)
    return bool(getattr(perms, permission, False))


def is_protected(member, guild) -> bool:
    """Guild owner and the bot itself are never actioned."""
    bot_member = getattr(guild, 'me', None)
    protected_ids = {getattr(guild, 'owner_id', None), getattr(bot_member, 'id', None)}
    return getattr(member, 'id', None) in protected_ids


def _add_edit_fields(embed: discord.Embed, event: ContentEvent) -> None:
    if not event.is_edit or event.diff is None:
        return
    embed.add_field(name="Content Changes", value=truncate(event.diff.change_type, 1024), inline=False)
    embed.add_field(name="Before", value=truncate(event.diff.before or "(empty)", 1024), inline=False)
    embed.add_field(name="After", value=truncate(event.diff.after or "(empty)", 1024), inline=False)


def build_notice_embed(event: ContentEvent, rule, reason: str, decision: LedgerDecision) -> discord.Embed:
    """In-channel notice shown to everyone."""
    suffix = " (edited message)" if event.is_edit else ""
    titles = {
        'warn': "Warning Issued",
        'delete': "Message Removed",
        'mute': "Member Timed Out",
        'kick': "Member Kicked",
        'ban': "Member Banned",
    }
    embed = discord.Embed(
        title=titles.get(decision.action, "Automod Action") + suffix,
        description=f"<@{event.user_id}> triggered **{rule.name}**.",
        colour=ACTION_COLORS.get(decision.action, COLOR_LOG),
    )
    embed.add_field(name="Reason", value=truncate(reason, 1024), inline=False)
    if decision.action == 'warn':
        embed.add_field(name="Warnings", value=f"{decision.count}/{decision.threshold}", inline=True)
    if event.is_edit and event.diff is not None:
        embed.add_field(name="Content Changes", value=truncate(event.diff.change_type, 1024), inline=False)
    return embed


def build_dm_embed(event: ContentEvent, rule, reason: str, decision: LedgerDecision, guild_name: str) -> discord.Embed:
    verbs = {
        'warn': "received a warning",
        'delete': "had a message removed",
        'mute': "were timed out",
        'kick': "were kicked",
        'ban': "were banned",
    }
    embed = discord.Embed(
        title=f"Automod: {decision.action}",
        description=f"You {verbs.get(decision.action, 'were actioned')} in **{guild_name}**.",
        colour=ACTION_COLORS.get(decision.action, COLOR_LOG),
    )
    embed.add_field(name="Rule", value=rule.name, inline=True)
    embed.add_field(name="Reason", value=truncate(reason, 1024), inline=False)
    if decision.action == 'warn':
        embed.add_field(
            name="Warnings",
            value=f"{decision.count}/{decision.threshold} (reaching the limit triggers {rule.action_type})",
            inline=False,
        )
    if event.content:
        embed.add_field(name="Message", value=truncate(event.content, 512), inline=False)
    _add_edit_fields(embed, event)
    return embed


def build_log_embed(event: ContentEvent, rule, reason: str, decision: LedgerDecision, performed: bool) -> discord.Embed:
    embed = discord.Embed(
        title=f"Automod {decision.action}" + (" (edit)" if event.is_edit else ""),
        description=f"User <@{event.user_id}> in <#{event.channel_id}>",
        colour=ACTION_COLORS.get(decision.action, COLOR_LOG),
    )
    embed.add_field(name="Rule", value=f"{rule.name} (#{rule.id}, {rule.trigger_type})", inline=False)
    embed.add_field(name="Reason", value=truncate(reason, 1024), inline=False)
    embed.add_field(name="Warnings", value=f"{decision.count}/{decision.threshold}", inline=True)
    if decision.downgraded:
        embed.add_field(name="Escalation", value=f"{rule.action_type} downgraded to warn", inline=True)
    embed.add_field(name="Status", value="done" if performed else "failed", inline=True)
    if event.content:
        embed.add_field(name="Content", value=truncate(event.content, 1024), inline=False)
    _add_edit_fields(embed, event)
    embed.set_footer(text=f"user_id={event.user_id} message_id={event.message_id}")
    return embed


def build_safe_link_embed(count: int) -> discord.Embed:
    noun = "link" if count == 1 else "links"
    return discord.Embed(
        title="Link Security Check",
        description=f"{count} {noun} checked and verified safe.",
        colour=COLOR_SAFE,
    )


async def send_dm(user, embed: discord.Embed) -> bool:
    try:
        await user.send(embed=embed)
        log_info("action.dm_sent", user_id=getattr(user, 'id', None))
        return True
    except (discord.Forbidden, discord.HTTPException) as e:
        log_warning("action.dm_failed", user_id=getattr(user, 'id', None), error=str(e))
        return False


async def post_notice(message, embed: discord.Embed) -> bool:
    try:
        await message.reply(embed=embed, mention_author=False)
        return True
    except discord.NotFound:
        pass
    except (discord.Forbidden, discord.HTTPException) as e:
        log_warning("action.notice_failed", message_id=getattr(message, 'id', None), error=str(e))
        return False
    # original message is gone; post in the channel instead
    try:
        await message.channel.send(embed=embed)
        return True
    except (discord.Forbidden, discord.HTTPException) as e:
        log_warning("action.notice_failed", message_id=getattr(message, 'id', None), error=str(e))
        return False


async def post_channel_text(channel, text: str) -> bool:
    try:
        await channel.send(text)
        return True
    except (discord.Forbidden, discord.HTTPException) as e:
        log_error("action.channel_notify_failed", channel_id=getattr(channel, 'id', None), error=str(e))
        return False


async def action_delete_message(message, reason: str) -> bool:
    try:
        await message.delete()
        log_info("action.delete_message", message_id=message.id, reason=reason)
        return True
    except discord.NotFound:
        log_warning("action.delete_message.already_deleted", message_id=message.id)
    except discord.Forbidden:
        log_error("action.delete_message.forbidden", message_id=message.id)
    except discord.HTTPException as e:
        log_error("action.delete_message.error", message_id=message.id, error=str(e))
    return False


async def action_timeout_member(member, minutes: int, reason: str) -> bool:
    try:
        await member.timeout(timedelta(minutes=minutes), reason=reason)
        log_info("action.timeout.success", user_id=member.id, minutes=minutes)
        return True
    except discord.Forbidden:
        log_error("action.timeout.forbidden", user_id=member.id)
    except discord.HTTPException as e:
        log_error("action.timeout.error", user_id=member.id, error=str(e))
    return False


__all__ = [
    'MAX_TIMEOUT_MINUTES', 'DEFAULT_MUTE_MINUTES', 'clamp_timeout_minutes', 'has_permission', 'is_protected',
    'build_notice_embed', 'build_dm_embed', 'build_log_embed', 'build_safe_link_embed',
    'send_dm', 'post_notice', 'post_channel_text', 'action_delete_message', 'action_timeout_member',
]
