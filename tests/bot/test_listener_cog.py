from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from questarena_bot.cogs.ListenerCog import ListenerCog, to_chat_message


class _FakeOrchestrator:
    def __init__(self):
        self.messages = []
        self.member_changes = []

    async def handle_message(self, message):
        self.messages.append(message)

    def member_changed(self, conversation_id, member_count):
        self.member_changes.append((conversation_id, member_count))


def _guild(member_count=5):
    return SimpleNamespace(
        id=1,
        member_count=member_count,
        text_channels=[SimpleNamespace(id=10), SimpleNamespace(id=11)],
    )


def _message(author_bot=False, guild=None, content="let's learn rust"):
    return SimpleNamespace(
        author=SimpleNamespace(id=42, bot=author_bot),
        guild=guild,
        channel=SimpleNamespace(id=10),
        content=content,
        created_at=datetime(2030, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def cog():
    bot = SimpleNamespace(orchestrator=_FakeOrchestrator())
    return ListenerCog(bot)


def test_to_chat_message_maps_channel_and_members():
    msg = to_chat_message(_message(guild=_guild(member_count=7)))
    assert msg.conversation_id == "10"
    assert msg.sender_id == "42"
    assert msg.text == "let's learn rust"
    assert msg.member_count == 7


@pytest.mark.asyncio
async def test_guild_messages_reach_the_engine(cog):
    await cog.on_message(_message(guild=_guild()))
    (received,) = cog.orchestrator.messages
    assert received.conversation_id == "10"


@pytest.mark.asyncio
async def test_bot_and_dm_messages_are_skipped(cog):
    await cog.on_message(_message(author_bot=True, guild=_guild()))
    await cog.on_message(_message(guild=None))
    assert cog.orchestrator.messages == []


@pytest.mark.asyncio
async def test_member_join_updates_every_text_channel(cog):
    member = SimpleNamespace(bot=False, guild=_guild(member_count=6))
    await cog._on_member_join(member)
    assert cog.orchestrator.member_changes == [("10", 6), ("11", 6)]

    bot_member = SimpleNamespace(bot=True, guild=_guild(member_count=7))
    await cog._on_member_remove(bot_member)
    assert len(cog.orchestrator.member_changes) == 2
