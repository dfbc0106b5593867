from __future__ import annotations
import discord
from ..client import ModerationBot
from ...infrastructure.logging.structured_logging import info as log_info

def setup_mod_status(bot: ModerationBot):
    @bot.tree.command(name="mod_status", description="Show automod engine status")
    async def mod_status(interaction: discord.Interaction):
        log_info("cmd.mod_status", user_id=interaction.user.id, guild_id=getattr(interaction.guild, 'id', None))
        engine = bot.engine
        lines = [
            f"Automod online. Policy loaded={bot.policy is not None} engine_running={engine.running}",
            f"Pending reversals={engine.scheduler.pending}",
        ]
        if interaction.guild is not None:
            state = bot.db.get_raid_state(interaction.guild.id)
            if state.active:
                lines.append(f"Raid mode ACTIVE since <t:{state.started_at}:R> (end with /mod_raid_end)")
            else:
                lines.append("Raid mode inactive")
            lines.append(f"Your warnings: {bot.db.get_total_warning_count(interaction.guild.id, interaction.user.id)}")
        await interaction.response.send_message("\n".join(lines), ephemeral=True)
    return bot
