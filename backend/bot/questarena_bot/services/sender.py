"""Outbound chat messages with retry on transient Discord failures."""

from __future__ import annotations

from typing import Optional

import discord
from discord.ext import commands
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from questarena_core.infra import settings
from questarena_core.utils.logging import get_logger

logger = get_logger(__name__)

DISCORD_MESSAGE_LIMIT = 2000


def _truncate(text: str, limit: int = DISCORD_MESSAGE_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "…"


class DiscordSender:
    """Delivers engine announcements to the channel a quest belongs to."""

    def __init__(
        self,
        bot: commands.Bot,
        attempts: Optional[int] = None,
        wait=None,
    ) -> None:
        self.bot = bot
        self._attempts = attempts or settings.SEND_RETRY_ATTEMPTS
        self._wait = wait or wait_exponential(multiplier=1, min=1, max=10)

    async def _resolve_channel(self, conversation_id: str):
        channel_id = int(conversation_id)
        channel = self.bot.get_channel(channel_id)
        if channel is None:
            channel = await self.bot.fetch_channel(channel_id)
        return channel

    async def send(self, conversation_id: str, text: str) -> None:
        channel = await self._resolve_channel(conversation_id)
        content = _truncate(text)
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._attempts),
                wait=self._wait,
                retry=retry_if_exception_type(discord.HTTPException),
            ):
                with attempt:
                    await channel.send(content)
        except RetryError as exc:
            logger.error(
                "Giving up on message to %s after %d attempts", conversation_id, self._attempts
            )
            raise exc.last_attempt.exception() from exc
