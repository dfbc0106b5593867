from __future__ import annotations
from typing import Optional, Tuple
from .registry import register
from .helpers import (
    action_delete_message,
    build_dm_embed,
    build_notice_embed,
    post_channel_text,
    post_notice,
    send_dm,
)


class WarnUserAction:
    def can_handle(self, action: str) -> bool:
        return action.strip().lower() == 'warn'

    async def execute(self, event, rule, reason: str, decision, ctx) -> Tuple[bool, Optional[str]]:  # noqa: ARG002
        message = event.message
        if message is None:
            return False, 'no_message'
        await post_notice(message, build_notice_embed(event, rule, reason, decision))
        guild_name = getattr(message.guild, 'name', '?')
        if not await send_dm(message.author, build_dm_embed(event, rule, reason, decision, guild_name)):
            await post_channel_text(
                message.channel,
                f"<@{event.user_id}> you have been warned ({decision.count}/{decision.threshold}): {reason}",
            )
        if rule.delete_message:
            await action_delete_message(message, reason)
        return True, None

register(WarnUserAction())
__all__ = ["WarnUserAction"]
