from __future__ import annotations
from typing import Optional, Tuple
from .registry import register
from .helpers import (
    action_delete_message,
    action_timeout_member,
    build_dm_embed,
    build_notice_embed,
    clamp_timeout_minutes,
    has_permission,
    is_protected,
    post_notice,
    send_dm,
)
from ....infrastructure.logging.structured_logging import error as log_error, info as log_info


class MuteAction:
    def can_handle(self, action: str) -> bool:
        return action.strip().lower() in {'mute', 'timeout'}

    async def execute(self, event, rule, reason: str, decision, ctx) -> Tuple[bool, Optional[str]]:  # noqa: ARG002
        message = event.message
        if message is None:
            return False, 'no_message'
        guild, member = message.guild, message.author
        if is_protected(member, guild):
            log_info("action.timeout.skip_protected", user_id=event.user_id)
            return False, 'protected_member'
        if not has_permission(guild, 'moderate_members'):
            log_error("action.timeout.missing_permission", guild_id=event.guild_id, permission='moderate_members')
            return False, 'missing_permission'
        minutes = clamp_timeout_minutes(rule.duration)
        success = await action_timeout_member(member, minutes, f"Automod: {reason}")
        if success:
            await post_notice(message, build_notice_embed(event, rule, reason, decision))
            await send_dm(member, build_dm_embed(event, rule, reason, decision, getattr(guild, 'name', '?')))
        if rule.delete_message:
            await action_delete_message(message, reason)
        return success, None if success else 'timeout_failed'

register(MuteAction())
__all__ = ["MuteAction"]
