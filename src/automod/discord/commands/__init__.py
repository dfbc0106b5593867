"""Slash commands, grouped by who may run them."""
from .mod_status import setup_mod_status
from .mod_rules import setup_mod_rules
from .mod_history import setup_mod_history
from .mod_config import setup_mod_config
from .mod_raid_end import setup_mod_raid_end
from ...infrastructure.logging.structured_logging import debug as log_debug

# open to every member
PUBLIC_COMMANDS = (setup_mod_status, setup_mod_rules)
# gated by moderator_only
MODERATOR_COMMANDS = (setup_mod_history, setup_mod_config, setup_mod_raid_end)


def register_all_commands(bot):
    for setup in PUBLIC_COMMANDS + MODERATOR_COMMANDS:
        setup(bot)
    log_debug("commands.registered", names=sorted(c.name for c in bot.tree.get_commands()))
    return bot

__all__ = ["register_all_commands", "PUBLIC_COMMANDS", "MODERATOR_COMMANDS"]
