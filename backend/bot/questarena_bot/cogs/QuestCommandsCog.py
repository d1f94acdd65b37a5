from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from questarena_core.domain.errors import QuestArenaError
from questarena_core.domain.models.QuestModel import Quest
from questarena_core.utils.logging import get_logger

logger = get_logger(__name__)


def describe_quest(quest: Quest) -> str:
    limits = quest.participant_limits
    return (
        f"`{quest.quest_id}` **{quest.title}** ({quest.difficulty.value}, "
        f"{quest.rewards.xp} XP) {len(quest.participants)}/{limits.max} joined"
    )


class QuestCommandsCog(commands.Cog):
    """Slash commands for taking part in quests from chat."""

    quest = app_commands.Group(name="quest", description="Take part in quests.")

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @property
    def orchestrator(self):
        return self.bot.orchestrator

    async def _reply(self, interaction: discord.Interaction, content: str) -> None:
        await interaction.response.send_message(content, ephemeral=True)

    @quest.command(name="list", description="Show active quests in this channel.")
    async def list_quests(self, interaction: discord.Interaction):
        quests = self.orchestrator.list_active_quests(str(interaction.channel_id))
        if not quests:
            await self._reply(interaction, "No active quests here right now.")
            return
        await self._reply(interaction, "\n".join(describe_quest(q) for q in quests))

    @quest.command(name="join", description="Join an active quest.")
    @app_commands.describe(quest_id="Quest ID, e.g. QUESA1B2C3")
    async def join(self, interaction: discord.Interaction, quest_id: str):
        try:
            joined = self.orchestrator.join(quest_id, str(interaction.user.id))
        except QuestArenaError as exc:
            await self._reply(interaction, exc.message)
            return
        message = "You joined the quest!" if joined else "You are already in this quest."
        await self._reply(interaction, message)

    @quest.command(name="leave", description="Leave a quest you joined.")
    async def leave(self, interaction: discord.Interaction, quest_id: str):
        try:
            left = self.orchestrator.leave(quest_id, str(interaction.user.id))
        except QuestArenaError as exc:
            await self._reply(interaction, exc.message)
            return
        await self._reply(interaction, "You left the quest." if left else "You were not in that quest.")

    @quest.command(name="complete", description="Mark a quest you joined as completed.")
    async def complete(self, interaction: discord.Interaction, quest_id: str):
        try:
            completion = self.orchestrator.complete(quest_id, str(interaction.user.id))
        except QuestArenaError as exc:
            await self._reply(interaction, exc.message)
            return
        await self._reply(
            interaction,
            f"Quest complete! +{completion.rewards.xp} XP, you are now level {completion.new_level}.",
        )

    @quest.command(name="stats", description="Show your quest stats.")
    async def stats(self, interaction: discord.Interaction):
        profile = self.orchestrator.get_user_stats(str(interaction.user.id))
        await self._reply(
            interaction,
            f"Level {profile.level} | {profile.xp} XP | social score {profile.social_score} | "
            f"{profile.quests_completed} quests completed",
        )


async def setup(bot: commands.Bot):
    await bot.add_cog(QuestCommandsCog(bot))
