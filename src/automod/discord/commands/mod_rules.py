from __future__ import annotations
import discord
from discord import app_commands
from ..client import ModerationBot
from ...domain.policy.formatter import format_rules
from ...utils.format_utils import truncate_for_discord

def setup_mod_rules(bot: ModerationBot):
    @bot.tree.command(name="mod_rules", description="Show automod rules for this server")
    @app_commands.describe(detail="Show thresholds, exemptions and anti-raid settings")
    async def mod_rules(interaction: discord.Interaction, detail: bool = False):
        if not bot.policy or interaction.guild is None:
            await interaction.response.send_message("No policy loaded", ephemeral=True)
            return
        text = format_rules(bot.policy.for_guild(interaction.guild.id), detail=detail)
        await interaction.response.send_message(truncate_for_discord(text or "(no rules)"), ephemeral=True)
    return bot
