from __future__ import annotations
from typing import Optional, Tuple
from .registry import register
from .helpers import action_delete_message, build_dm_embed, build_notice_embed, post_notice, send_dm


class DeleteMessageAction:
    def can_handle(self, action: str) -> bool:
        return action.strip().lower() == 'delete'

    async def execute(self, event, rule, reason: str, decision, ctx) -> Tuple[bool, Optional[str]]:  # noqa: ARG002
        message = event.message
        if message is None:
            return False, 'no_message'
        await post_notice(message, build_notice_embed(event, rule, reason, decision))
        deleted = await action_delete_message(message, reason)
        await send_dm(message.author, build_dm_embed(event, rule, reason, decision, getattr(message.guild, 'name', '?')))
        return deleted, None if deleted else 'delete_failed'

register(DeleteMessageAction())
__all__ = ["DeleteMessageAction"]
