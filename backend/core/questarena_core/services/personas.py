"""Quest Master personas and the keyword table used to pick one."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import FrozenSet, Optional, Sequence, Tuple

from questarena_core.domain.models.QuestModel import QuestType


@dataclass(frozen=True)
class Persona:
    name: str
    description: str
    quest_types: Tuple[QuestType, ...]
    style: str
    greeting: str


MENTOR = Persona(
    name="The Mentor",
    description="Guides users through skill development and learning",
    quest_types=(QuestType.KNOWLEDGE_QUEST, QuestType.COMMUNITY_BUILDING),
    style="encouraging",
    greeting="Every expert was once a beginner. Let's grow together!",
)
COMPETITOR = Persona(
    name="The Competitor",
    description="Creates competitive challenges and tournaments",
    quest_types=(QuestType.SOCIAL_CHALLENGE, QuestType.KNOWLEDGE_QUEST),
    style="competitive",
    greeting="A new challenge has dropped. Who's taking the crown?",
)
CREATOR = Persona(
    name="The Creator",
    description="Fosters artistic and creative expression",
    quest_types=(QuestType.CREATIVE_CONTEST, QuestType.COMMUNITY_BUILDING),
    style="creative",
    greeting="Time to make something nobody has seen before!",
)
CONNECTOR = Persona(
    name="The Connector",
    description="Facilitates networking and relationship building",
    quest_types=(QuestType.SOCIAL_CHALLENGE, QuestType.COMMUNITY_BUILDING),
    style="analytical",
    greeting="Great communities are built one conversation at a time.",
)
EXPLORER = Persona(
    name="The Explorer",
    description="Introduces users to new protocols and technologies",
    quest_types=(QuestType.CROSS_PROTOCOL, QuestType.KNOWLEDGE_QUEST),
    style="adventurous",
    greeting="New frontiers await. Pack your curiosity!",
)

QUEST_MASTER_PERSONAS: Tuple[Persona, ...] = (MENTOR, COMPETITOR, CREATOR, CONNECTOR, EXPLORER)

# Checked in order; the first set with any keyword present wins.
KEYWORD_TABLE: Tuple[Tuple[FrozenSet[str], str], ...] = (
    (frozenset({"learn", "help", "teach"}), MENTOR.name),
    (frozenset({"compete", "challenge", "win"}), COMPETITOR.name),
    (frozenset({"create", "art", "design"}), CREATOR.name),
    (frozenset({"connect", "network", "community"}), CONNECTOR.name),
    (frozenset({"protocol", "web3", "blockchain"}), EXPLORER.name),
)


class PersonaSelector:
    def __init__(
        self,
        personas: Sequence[Persona] = QUEST_MASTER_PERSONAS,
        keyword_table: Sequence[Tuple[FrozenSet[str], str]] = KEYWORD_TABLE,
        rng: random.Random | None = None,
    ) -> None:
        if not personas:
            raise ValueError("At least one persona is required")
        self._personas = {p.name: p for p in personas}
        self._keyword_table = tuple(keyword_table)
        self._rng = rng or random.Random()

    @property
    def names(self) -> list[str]:
        return list(self._personas)

    def get(self, name: str) -> Optional[Persona]:
        return self._personas.get(name)

    def match(self, text: str) -> Optional[Persona]:
        """Deterministic keyword match; ``None`` when no keyword set applies."""
        lowered = (text or "").lower()
        for keywords, name in self._keyword_table:
            # substring match, so "learning" hits "learn"
            if any(keyword in lowered for keyword in keywords) and name in self._personas:
                return self._personas[name]
        return None

    def select(self, text: str) -> Persona:
        matched = self.match(text)
        if matched is not None:
            return matched
        return self._rng.choice(list(self._personas.values()))
