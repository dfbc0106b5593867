from __future__ import annotations
import time
import discord
from discord import app_commands
from ..client import ModerationBot
from ...infrastructure.logging.structured_logging import info as log_info
from ...utils.decorators import moderator_only
from ...utils.format_utils import format_rel_age, truncate_for_discord

def setup_mod_history(bot: ModerationBot):
    @bot.tree.command(name="mod_history", description="Show recent automod violations for a user")
    @moderator_only("/mod_history restricted to moderators (configure MOD_EXEMPT_ROLE_NAMES)", "cmd.mod_history.denied")
    @app_commands.describe(
        user="Target user",
        limit="Page size (default 20)",
        window_minutes="Only violations within the past N minutes",
        include_content="Include message excerpts",
        page="Page number (starting at 1)"
    )
    async def mod_history(
        interaction: discord.Interaction,
        user: discord.User,
        limit: int = 20,
        window_minutes: int | None = None,
        include_content: bool = False,
        page: int = 1,
    ):
        gid = interaction.guild.id
        limit = max(1, min(limit, 100))
        page = max(1, page)
        rows = bot.db.fetch_violations(gid, user.id, limit=limit, offset=(page - 1) * limit, window_minutes=window_minutes)
        if not rows:
            await interaction.followup.send("No recent automod violations for that user.")
            return
        now = int(time.time())
        lines: list[str] = [
            f"History page {page} (page_size={limit}) total_violations={bot.db.count_violations(gid, user.id)} "
            f"active_warnings={bot.db.get_total_warning_count(gid, user.id)}"
        ]
        for r in rows:
            meta = r['metadata']
            action = r['action_taken']
            if meta.get('downgraded'):
                action += f" (from {meta.get('configured_action')})"
            if not meta.get('performed', True):
                action += " [failed]"
            line = f"{format_rel_age(int(r['ts']), now_ts=now)} ago • {r['rule_name']} • {action} • {r['reason'] or ''}"
            if meta.get('edit'):
                line += " • edit"
            if include_content and r.get('message_content'):
                line += f" • \"{r['message_content'][:80]}\""
            lines.append(line)
        await interaction.followup.send(truncate_for_discord("\n".join(lines)))
        log_info("cmd.mod_history", user_id=interaction.user.id, target_id=user.id)
    return bot
