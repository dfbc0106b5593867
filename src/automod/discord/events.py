from __future__ import annotations

import discord

from .client import bot
from .adapters import event_from_message, should_inspect
from ..infrastructure.logging.structured_logging import (
    info as log_info,
    warning as log_warning,
    debug as log_debug,
)

@bot.event
async def on_ready():
    log_info(
        "lifecycle.ready",
        bot_id=getattr(bot.user, 'id', None),
        guilds=[g.id for g in bot.guilds],
        policy_loaded=bot.policy is not None,
        engine_running=bot.engine.running,
    )

@bot.event
async def on_disconnect():
    log_warning("lifecycle.disconnected")

@bot.event
async def on_resumed():
    log_info("lifecycle.resumed")

@bot.event
async def on_message(message: discord.Message):
    if not should_inspect(message):
        return
    await bot.engine.handle_message(event_from_message(message))

@bot.event
async def on_message_edit(before: discord.Message, after: discord.Message):
    if not should_inspect(after):
        return
    if before.content == after.content:
        # embed unfurls and pins also fire edits
        log_debug("message.edit_ignored", message_id=after.id)
        return
    await bot.engine.handle_message(event_from_message(after, previous_content=before.content or ""))

@bot.event
async def on_member_join(member: discord.Member):
    if member.bot:
        return
    await bot.engine.handle_member_join(member)
