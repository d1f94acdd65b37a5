from __future__ import annotations

from types import SimpleNamespace

import discord
import pytest
from tenacity import wait_none

from questarena_bot.services.sender import DISCORD_MESSAGE_LIMIT, DiscordSender


def _http_error(status=503):
    return discord.HTTPException(SimpleNamespace(status=status, reason="Service Unavailable"), "busy")


class _FlakyChannel:
    def __init__(self, failures):
        self.failures = list(failures)
        self.sent = []

    async def send(self, content):
        if self.failures:
            raise self.failures.pop(0)
        self.sent.append(content)


def _bot(channel):
    async def fetch_channel(channel_id):
        return channel

    return SimpleNamespace(get_channel=lambda channel_id: None, fetch_channel=fetch_channel)


@pytest.mark.asyncio
async def test_send_retries_transient_http_errors():
    channel = _FlakyChannel([_http_error(), _http_error()])
    sender = DiscordSender(_bot(channel), attempts=3, wait=wait_none())

    await sender.send("123", "hello")
    assert channel.sent == ["hello"]


@pytest.mark.asyncio
async def test_send_gives_up_after_max_attempts():
    channel = _FlakyChannel([_http_error() for _ in range(3)])
    sender = DiscordSender(_bot(channel), attempts=3, wait=wait_none())

    with pytest.raises(discord.HTTPException):
        await sender.send("123", "hello")
    assert channel.sent == []


@pytest.mark.asyncio
async def test_non_http_errors_are_not_retried():
    channel = _FlakyChannel([ValueError("bad content")])
    sender = DiscordSender(_bot(channel), attempts=3, wait=wait_none())

    with pytest.raises(ValueError):
        await sender.send("123", "hello")
    assert channel.failures == []


@pytest.mark.asyncio
async def test_long_messages_are_truncated():
    channel = _FlakyChannel([])
    cached = SimpleNamespace(get_channel=lambda channel_id: channel)
    await DiscordSender(cached, attempts=1, wait=wait_none()).send("123", "x" * 5000)
    assert len(channel.sent[0]) == DISCORD_MESSAGE_LIMIT
