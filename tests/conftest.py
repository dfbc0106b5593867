"""
Shared fixtures for automod tests.

Discord objects are MagicMock/AsyncMock doubles; the database is an
in-memory ModerationDB driven by a controllable clock.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from automod.domain.moderation.models import ContentEvent, EventKind  # noqa: E402
from automod.domain.policy.loader import parse_policy  # noqa: E402
from automod.domain.policy.models import ModerationRule  # noqa: E402
from automod.domain.policy.provider import PolicyConfigProvider  # noqa: E402
from automod.infrastructure.persistence.db_core import ModerationDB  # noqa: E402

GUILD_ID = 1000
OWNER_ID = 1
BOT_ID = 2
USER_ID = 42
CHANNEL_ID = 500
LOG_CHANNEL_ID = 555
ALERT_CHANNEL_ID = 777
BASE_TS = 1_700_000_000.0


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: float = BASE_TS):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db(clock):
    database = ModerationDB(":memory:", warning_decay_seconds=3600, clock=clock)
    yield database
    database.close()


def make_rule(**overrides) -> ModerationRule:
    data = {"id": 1, "name": "Test rule", "trigger_type": "caps", "action_type": "warn"}
    data.update(overrides)
    return ModerationRule(**data)


@pytest.fixture
def rule_factory():
    return make_rule


def make_provider(rules=None, **guild_fields) -> PolicyConfigProvider:
    defaults = {"rules": rules or []}
    defaults.update(guild_fields)
    return PolicyConfigProvider(parse_policy({"defaults": defaults}))


@pytest.fixture
def provider_factory():
    return make_provider


def _permissions(**overrides):
    perms = MagicMock()
    for name in ("moderate_members", "kick_members", "ban_members", "manage_messages", "manage_guild"):
        setattr(perms, name, overrides.get(name, True))
    return perms


@pytest.fixture
def mock_alert_channel():
    channel = MagicMock()
    channel.id = ALERT_CHANNEL_ID
    channel.send = AsyncMock()
    return channel


@pytest.fixture
def mock_log_channel():
    channel = MagicMock()
    channel.id = LOG_CHANNEL_ID
    channel.send = AsyncMock()
    return channel


@pytest.fixture
def mock_guild(mock_alert_channel, mock_log_channel):
    """Guild where the bot holds every moderation permission."""
    import discord

    guild = MagicMock()
    guild.id = GUILD_ID
    guild.name = "Test Guild"
    guild.owner_id = OWNER_ID
    guild.member_count = 250
    guild.verification_level = discord.VerificationLevel.low
    guild.me = MagicMock()
    guild.me.id = BOT_ID
    guild.me.guild_permissions = _permissions()
    channels = {ALERT_CHANNEL_ID: mock_alert_channel, LOG_CHANNEL_ID: mock_log_channel}
    guild.get_channel = MagicMock(side_effect=channels.get)
    guild.get_member = MagicMock(return_value=None)
    guild.ban = AsyncMock()
    guild.unban = AsyncMock()
    guild.edit = AsyncMock()
    return guild


def make_member(guild, user_id=USER_ID, *, age_days=365, avatar="abc", name="regular", roles=()):
    member = MagicMock()
    member.id = user_id
    member.name = name
    member.bot = False
    member.guild = guild
    member.avatar = avatar
    member.roles = list(roles)
    member.created_at = datetime.fromtimestamp(BASE_TS, tz=timezone.utc) - timedelta(days=age_days)
    member.send = AsyncMock()
    member.kick = AsyncMock()
    member.timeout = AsyncMock()
    member.__str__ = MagicMock(return_value=f"{name}#0001")
    return member


@pytest.fixture
def member_factory(mock_guild):
    def _make(user_id=USER_ID, **kwargs):
        return make_member(mock_guild, user_id, **kwargs)
    return _make


@pytest.fixture
def mock_member(member_factory):
    return member_factory()


@pytest.fixture
def mock_channel():
    channel = MagicMock()
    channel.id = CHANNEL_ID
    channel.send = AsyncMock()
    return channel


@pytest.fixture
def mock_message(mock_guild, mock_member, mock_channel):
    message = MagicMock()
    message.id = 9001
    message.guild = mock_guild
    message.author = mock_member
    message.channel = mock_channel
    message.reply = AsyncMock()
    message.delete = AsyncMock()
    return message


@pytest.fixture
def event_factory(mock_message):
    """Build a ContentEvent bound to ``mock_message``."""
    def _make(content, *, kind=EventKind.CREATE, previous_content=None, message=mock_message, **overrides):
        data = dict(
            guild_id=GUILD_ID,
            user_id=USER_ID,
            channel_id=CHANNEL_ID,
            message_id=message.id if message is not None else 9001,
            content=content,
            kind=kind,
            previous_content=previous_content,
            message=message,
        )
        data.update(overrides)
        if message is not None:
            message.content = content
        return ContentEvent(**data)
    return _make
