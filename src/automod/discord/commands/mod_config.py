from __future__ import annotations
import discord
from ..client import ModerationBot
from ...utils.decorators import moderator_only

def setup_mod_config(bot: ModerationBot):
    @bot.tree.command(name="mod_config", description="Show sanitized runtime configuration & anti-raid highlights")
    @moderator_only("/mod_config restricted to moderators", "cmd.mod_config.denied")
    async def mod_config(interaction: discord.Interaction):
        cfg = bot.config
        env_show = {
            'POLICY_FILE': cfg.policy_file,
            'SQLITE_PATH': cfg.sqlite_path,
            'WARNING_DECAY_MINUTES': cfg.warning_decay_minutes,
            'GOOGLE_SAFE_BROWSING_API_KEY': 'set' if cfg.google_safe_browsing_api_key else 'unset',
            'VIRUSTOTAL_API_KEY': 'set' if cfg.virustotal_api_key else 'unset',
            'REPUTATION_TIMEOUT_SECONDS': cfg.reputation_timeout_seconds,
            'MOD_EXEMPT_ROLE_NAMES': cfg.mod_exempt_role_names,
        }
        lines = ["Config summary:"]
        for k, v in env_show.items():
            lines.append(f"  {k}={v}")
        if bot.policy:
            raid = bot.policy.for_guild(interaction.guild.id).anti_raid
            lines.append(
                f"Anti-raid enabled={raid.enabled} rate={raid.join_rate}/{raid.join_window}s "
                f"action={raid.raid_action} grace={raid.grace_period}m auto_kick={raid.auto_kick}"
            )
        await interaction.followup.send("\n".join(lines))
    return bot
