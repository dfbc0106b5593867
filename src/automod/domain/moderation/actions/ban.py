from __future__ import annotations
from typing import Optional, Tuple
import discord
from .registry import register
from .helpers import (
    build_dm_embed,
    build_notice_embed,
    has_permission,
    is_protected,
    post_notice,
    send_dm,
)
from ....infrastructure.logging.structured_logging import error as log_error, info as log_info

BAN_DELETE_MESSAGE_SECONDS = 24 * 60 * 60


class BanAction:
    def can_handle(self, action: str) -> bool:
        return action.strip().lower() == 'ban'

    async def execute(self, event, rule, reason: str, decision, ctx) -> Tuple[bool, Optional[str]]:
        message = event.message
        if message is None:
            return False, 'no_message'
        guild, member = message.guild, message.author
        if is_protected(member, guild):
            log_info("action.ban.skip_protected", user_id=event.user_id)
            return False, 'protected_member'
        if not has_permission(guild, 'ban_members'):
            log_error("action.ban.missing_permission", guild_id=event.guild_id, permission='ban_members')
            return False, 'missing_permission'
        await send_dm(member, build_dm_embed(event, rule, reason, decision, getattr(guild, 'name', '?')))
        try:
            # a ban also purges the last day of the member's messages
            await guild.ban(member, reason=f"Automod: {reason}", delete_message_seconds=BAN_DELETE_MESSAGE_SECONDS)
        except (discord.Forbidden, discord.HTTPException) as e:
            log_error("action.ban.error", user_id=event.user_id, error=str(e))
            return False, 'ban_failed'
        log_info("action.ban.success", user_id=event.user_id, guild_id=event.guild_id, duration=rule.duration)
        await post_notice(message, build_notice_embed(event, rule, reason, decision))
        scheduler = getattr(ctx, 'scheduler', None)
        if rule.duration and scheduler is not None:
            user_id = event.user_id

            async def _unban():
                await guild.unban(discord.Object(id=user_id), reason="Automod: temporary ban expired")

            scheduler.schedule(rule.duration * 60, _unban, label=f"unban:{event.guild_id}:{user_id}")
        return True, None

register(BanAction())
__all__ = ["BanAction", "BAN_DELETE_MESSAGE_SECONDS"]
