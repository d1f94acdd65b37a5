"""Quest proposal port plus the built-in template proposer.

The orchestrator only depends on :class:`QuestProposer`; how a definition is
produced (templates, rules, a model) is the proposer's business.
"""

from __future__ import annotations

import random
from typing import Any, Dict, Mapping, Protocol, Union

from questarena_core.domain.models.AnalyticsModel import ActivityLevel, ConversationAnalytics
from questarena_core.domain.models.QuestModel import (
    Difficulty,
    MiniAppConfig,
    MiniAppType,
    ParticipantLimits,
    Quest,
    QuestDefinition,
    QuestRewards,
    QuestType,
)
from questarena_core.services.personas import Persona

ProposalResult = Union[QuestDefinition, Mapping[str, Any], None]


class QuestProposer(Protocol):
    async def propose(
        self,
        persona: Persona,
        analytics: ConversationAnalytics,
        recent_summary: str,
        member_count: int,
    ) -> ProposalResult: ...


_TEMPLATES: Dict[QuestType, Dict[str, Any]] = {
    QuestType.SOCIAL_CHALLENGE: {
        "title": "Icebreaker Relay: {topic}",
        "description": "Pass the mic! Each participant shares a hot take about {topic} "
        "and tags the next person to respond.",
        "requirements": ["Post one take", "Reply to another participant"],
        "mini_app": MiniAppType.GAME,
    },
    QuestType.KNOWLEDGE_QUEST: {
        "title": "Knowledge Sprint: {topic}",
        "description": "Pool what the group knows about {topic}. Drop your best fact "
        "or resource and vote on the most useful one.",
        "requirements": ["Share one fact or link", "Vote on a submission"],
        "mini_app": MiniAppType.POLL,
    },
    QuestType.CREATIVE_CONTEST: {
        "title": "Creative Jam: {topic}",
        "description": "Make something inspired by {topic}: a meme, sketch, poem or "
        "tiny story. The gallery decides the winner.",
        "requirements": ["Submit one creation"],
        "mini_app": MiniAppType.GALLERY,
    },
    QuestType.COMMUNITY_BUILDING: {
        "title": "Community Builders: {topic}",
        "description": "Welcome someone new to the {topic} conversation and help them "
        "find their first collaborator.",
        "requirements": ["Greet a member", "Introduce two people"],
        "mini_app": MiniAppType.DASHBOARD,
    },
    QuestType.CROSS_PROTOCOL: {
        "title": "Protocol Expedition: {topic}",
        "description": "Try a protocol or tool related to {topic} you have never used "
        "and report back what you found.",
        "requirements": ["Try something new", "Post a short field report"],
        "mini_app": MiniAppType.LEADERBOARD,
    },
}

_DIFFICULTY_BY_ACTIVITY = {
    ActivityLevel.LOW: Difficulty.EASY,
    ActivityLevel.MEDIUM: Difficulty.MEDIUM,
    ActivityLevel.HIGH: Difficulty.HARD,
}

_XP_BY_DIFFICULTY = {
    Difficulty.EASY: 50,
    Difficulty.MEDIUM: 100,
    Difficulty.HARD: 150,
    Difficulty.EXPERT: 250,
}

_DURATION_BY_DIFFICULTY = {
    Difficulty.EASY: 30,
    Difficulty.MEDIUM: 45,
    Difficulty.HARD: 60,
    Difficulty.EXPERT: 90,
}

MAX_PARTICIPANTS = 10


class TemplateQuestProposer:
    """Rule-based proposer: persona picks the type, activity picks the difficulty."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    async def propose(
        self,
        persona: Persona,
        analytics: ConversationAnalytics,
        recent_summary: str,
        member_count: int,
    ) -> QuestDefinition:
        quest_type = self._rng.choice(persona.quest_types)
        template = _TEMPLATES[quest_type]
        topic = analytics.topics[0] if analytics.topics else "general"
        difficulty = _DIFFICULTY_BY_ACTIVITY[analytics.activity_level]

        minimum = 2 if member_count >= 2 else 1
        maximum = max(minimum, min(member_count or MAX_PARTICIPANTS // 2, MAX_PARTICIPANTS))
        badges = [f"{persona.style}-{quest_type.value}"] if difficulty is Difficulty.HARD else []

        return QuestDefinition(
            type=quest_type,
            title=template["title"].format(topic=topic),
            description=template["description"].format(topic=topic),
            difficulty=difficulty,
            duration_minutes=_DURATION_BY_DIFFICULTY[difficulty],
            participant_limits=ParticipantLimits(min=minimum, max=maximum),
            rewards=QuestRewards(xp=_XP_BY_DIFFICULTY[difficulty], badges=badges),
            requirements=list(template["requirements"]),
            mini_app_config=MiniAppConfig(
                type=template["mini_app"],
                config={"topic": topic, "persona": persona.name},
            ),
        )


def format_announcement(persona: Persona, quest: Quest, mini_app_url: str | None = None) -> str:
    """Persona-voiced chat announcement for a freshly created quest."""

    rewards = quest.rewards
    reward_line = f"{rewards.xp} XP"
    if rewards.tokens:
        reward_line += f", {rewards.tokens} tokens"
    if rewards.badges:
        reward_line += f", badges: {', '.join(rewards.badges)}"

    limits = quest.participant_limits
    lines = [
        f"{persona.name}: {persona.greeting}",
        "",
        f"New quest: {quest.title} ({quest.type.value.replace('_', ' ')})",
        quest.description,
        "",
        f"Difficulty: {quest.difficulty.value} | Duration: {quest.duration_minutes} minutes",
        f"Participants: {limits.min}-{limits.max} | Rewards: {reward_line}",
    ]
    if mini_app_url:
        lines.append(f"Join here: {mini_app_url}")
    return "\n".join(lines)
