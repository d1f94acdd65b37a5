import asyncio
import logging

import discord
from discord.ext import commands

from questarena_core.infra import settings
from questarena_core.services.orchestrator import QuestOrchestrator
from questarena_core.utils.logging import get_logger

from .services.sender import DiscordSender

logger = get_logger(__name__)

EXTENSIONS = (
    "questarena_bot.cogs.ListenerCog",
    "questarena_bot.cogs.QuestCommandsCog",
)


class QuestArenaBot(commands.Bot):
    """Discord transport for the quest engine.

    Inbound guild messages go to the orchestrator; quest announcements
    come back out through ``DiscordSender``.
    """

    def __init__(self, orchestrator: QuestOrchestrator, intents: discord.Intents):
        super().__init__(
            command_prefix=commands.when_mentioned_or("q!"), intents=intents
        )
        self.orchestrator = orchestrator

    # Called before the bot logins to discord
    async def setup_hook(self):
        loaded: list[str] = []
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                loaded.append(ext)
                logger.info("Loaded extension %s", ext)
            except Exception:
                logger.exception("Error loading extension %s", ext)
        logger.info("Cog loader audit: %d loaded, %d failed", len(loaded), len(EXTENSIONS) - len(loaded))

        self.orchestrator.sender = DiscordSender(self)
        await super().setup_hook()

    async def start(self, BOT_TOKEN):
        normalized = (BOT_TOKEN or "").strip()
        if normalized.lower() in {"", "replace_me"}:
            logging.error("BOT_TOKEN is missing or still set to the placeholder value.")
            return

        try:
            await super().start(normalized)
        except discord.LoginFailure as exc:
            logger.error("Discord login failed: %s", exc)
        except discord.HTTPException as exc:
            logger.error("Discord HTTP error during startup: %s", exc)

    async def on_ready(self):
        self.orchestrator.self_id = str(self.user.id)
        try:
            synced = await self.tree.sync()
            logger.info("Synced %d slash commands", len(synced))
        except discord.HTTPException as exc:
            logger.warning("Slash command sync failed: %s", exc)
        logger.info("Logged in as %s (ID: %s)", self.user, self.user.id)
        logger.info("Loaded cogs: %s", ", ".join(sorted(self.cogs.keys())))


def build_bot(orchestrator: QuestOrchestrator) -> QuestArenaBot:
    intents = discord.Intents.default()
    intents.message_content = True
    intents.members = True
    return QuestArenaBot(orchestrator, intents)


async def main() -> None:
    orchestrator = QuestOrchestrator.from_settings()
    bot = build_bot(orchestrator)
    sweeper = asyncio.create_task(
        orchestrator.run_expiry_loop(settings.EXPIRY_SWEEP_INTERVAL_SECONDS)
    )
    try:
        async with bot:
            await bot.start(settings.BOT_TOKEN)
    finally:
        sweeper.cancel()


if __name__ == "__main__":
    asyncio.run(main())
