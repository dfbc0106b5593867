from __future__ import annotations
from typing import Optional, Tuple
import discord
from .registry import register
from .helpers import (
    action_delete_message,
    build_dm_embed,
    build_notice_embed,
    has_permission,
    is_protected,
    post_notice,
    send_dm,
)
from ....infrastructure.logging.structured_logging import error as log_error, info as log_info


class KickAction:
    def can_handle(self, action: str) -> bool:
        return action.strip().lower() == 'kick'

    async def execute(self, event, rule, reason: str, decision, ctx) -> Tuple[bool, Optional[str]]:  # noqa: ARG002
        message = event.message
        if message is None:
            return False, 'no_message'
        guild, member = message.guild, message.author
        if is_protected(member, guild):
            log_info("action.kick.skip_protected", user_id=event.user_id)
            return False, 'protected_member'
        if not has_permission(guild, 'kick_members'):
            log_error("action.kick.missing_permission", guild_id=event.guild_id, permission='kick_members')
            return False, 'missing_permission'
        # DM first: once kicked the member may share no guild with the bot
        await send_dm(member, build_dm_embed(event, rule, reason, decision, getattr(guild, 'name', '?')))
        try:
            await member.kick(reason=f"Automod: {reason}")
        except (discord.Forbidden, discord.HTTPException) as e:
            log_error("action.kick.error", user_id=event.user_id, error=str(e))
            return False, 'kick_failed'
        log_info("action.kick.success", user_id=event.user_id, guild_id=event.guild_id)
        await post_notice(message, build_notice_embed(event, rule, reason, decision))
        if rule.delete_message:
            await action_delete_message(message, reason)
        return True, None

register(KickAction())
__all__ = ["KickAction"]
