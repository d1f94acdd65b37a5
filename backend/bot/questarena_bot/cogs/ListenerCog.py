from __future__ import annotations

from datetime import datetime, timezone

from discord import Guild, Member, Message
from discord.ext import commands

from questarena_core.domain.models.AnalyticsModel import ChatMessage
from questarena_core.utils.logging import get_logger

logger = get_logger(__name__)


def to_chat_message(message: Message) -> ChatMessage:
    guild = message.guild
    return ChatMessage(
        conversation_id=str(message.channel.id),
        sender_id=str(message.author.id),
        text=message.content or "",
        sent_at=message.created_at or datetime.now(timezone.utc),
        member_count=(guild.member_count or 0) if guild is not None else 0,
    )


class ListenerCog(commands.Cog):
    """Feeds guild chat into the quest engine."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @property
    def orchestrator(self):
        return self.bot.orchestrator

    @commands.Cog.listener("on_message")
    async def on_message(self, message: Message):

        if message.author.bot:
            return

        if message.guild is None:
            logger.debug("Skipping DM message from %s (no guild context)", message.author.id)
            return

        await self.orchestrator.handle_message(to_chat_message(message))

    def _member_count_changed(self, guild: Guild) -> None:
        count = guild.member_count or 0
        for channel in guild.text_channels:
            self.orchestrator.member_changed(str(channel.id), count)
        logger.debug("Guild %s now has %d members", guild.id, count)

    @commands.Cog.listener("on_member_join")
    async def _on_member_join(self, member: Member):
        if member.bot:
            return
        self._member_count_changed(member.guild)

    @commands.Cog.listener("on_member_remove")
    async def _on_member_remove(self, member: Member):
        if member.bot:
            return
        self._member_count_changed(member.guild)


async def setup(bot: commands.Bot):
    await bot.add_cog(ListenerCog(bot))
