"""Tests for discord.Message -> ContentEvent translation."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

from automod.discord.adapters import event_from_message, should_inspect
from automod.domain.moderation.models import EventKind


def _ids(*values):
    out = []
    for v in values:
        obj = MagicMock()
        obj.id = v
        out.append(obj)
    return out


class TestEventFromMessage:
    def test_create_event(self, mock_message, mock_member):
        mock_member.roles = _ids(10, 11)
        mock_message.content = "hello <@5>"
        mock_message.mentions = _ids(5, 5, 6)
        mock_message.role_mentions = _ids(10)
        mock_message.created_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
        mock_message.edited_at = None

        event = event_from_message(mock_message)

        assert event.kind is EventKind.CREATE
        assert event.role_ids == frozenset({10, 11})
        assert event.mentioned_user_ids == frozenset({5, 6})
        assert event.mentioned_role_ids == frozenset({10})
        assert event.timestamp == datetime(2024, 1, 1, tzinfo=timezone.utc).timestamp()
        assert event.message is mock_message

    def test_edit_event(self, mock_message):
        mock_message.content = "after"
        mock_message.mentions = []
        mock_message.role_mentions = []
        mock_message.created_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
        mock_message.edited_at = datetime(2024, 1, 2, tzinfo=timezone.utc)

        event = event_from_message(mock_message, previous_content="before")

        assert event.is_edit
        assert event.previous_content == "before"
        assert event.timestamp == mock_message.edited_at.timestamp()


class TestShouldInspect:
    def test_bots_and_dms_skipped(self, mock_message, mock_member):
        assert should_inspect(mock_message) is True
        mock_member.bot = True
        assert should_inspect(mock_message) is False
        mock_member.bot = False
        mock_message.guild = None
        assert should_inspect(mock_message) is False
