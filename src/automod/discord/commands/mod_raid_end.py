from __future__ import annotations
import discord
from ..client import ModerationBot
from ...infrastructure.logging.structured_logging import info as log_info
from ...utils.decorators import moderator_only

def setup_mod_raid_end(bot: ModerationBot):
    @bot.tree.command(name="mod_raid_end", description="Mark an active raid as over")
    @moderator_only("/mod_raid_end restricted to moderators", "cmd.mod_raid_end.denied")
    async def mod_raid_end(interaction: discord.Interaction):
        cleared = bot.engine.clear_raid(interaction.guild.id)
        log_info("cmd.mod_raid_end", user_id=interaction.user.id, guild_id=interaction.guild.id, cleared=cleared)
        await interaction.followup.send("Raid mode cleared." if cleared else "No active raid.")
    return bot
