"""Entry point wiring the message stream and client requests to the engine."""

from __future__ import annotations

import asyncio
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Protocol

from questarena_core.domain.errors import (
    InvalidQuestDefinition,
    ProposerUnavailable,
    QuestAlreadyActive,
    QuestArenaError,
    QuestNotFound,
)
from questarena_core.domain.models.AnalyticsModel import ChatMessage
from questarena_core.domain.models.MiniAppModel import MiniAppRecord
from questarena_core.domain.models.QuestModel import Quest, QuestDefinition
from questarena_core.domain.models.UserProfileModel import QuestCompletion, UserProfile
from questarena_core.infra import settings
from questarena_core.services.event_broadcaster import Event, EventBroadcaster, EventType
from questarena_core.services.gating import GatingPolicy
from questarena_core.services.miniapp_manager import MiniAppLifecycleManager
from questarena_core.services.participation import ParticipationController
from questarena_core.services.personas import Persona, PersonaSelector
from questarena_core.services.profile_store import UserProfileStore
from questarena_core.services.proposer import (
    QuestProposer,
    TemplateQuestProposer,
    format_announcement,
)
from questarena_core.services.quest_registry import QuestRegistry
from questarena_core.services.signal_tracker import ConversationSignalTracker
from questarena_core.utils.logging import get_logger

logger = get_logger(__name__)


class MessageSender(Protocol):
    async def send(self, conversation_id: str, text: str) -> None: ...


StreamFactory = Callable[[], AsyncIterator[ChatMessage]]


class QuestOrchestrator:
    def __init__(
        self,
        *,
        tracker: ConversationSignalTracker,
        registry: QuestRegistry,
        profiles: UserProfileStore,
        mini_apps: MiniAppLifecycleManager,
        broadcaster: EventBroadcaster,
        proposer: QuestProposer,
        personas: PersonaSelector,
        policy: GatingPolicy | None = None,
        sender: MessageSender | None = None,
        clock: Callable[[], datetime] | None = None,
        proposer_timeout: float = 20.0,
        self_id: str | None = None,
    ) -> None:
        self.tracker = tracker
        self.registry = registry
        self.profiles = profiles
        self.mini_apps = mini_apps
        self.broadcaster = broadcaster
        self.personas = personas
        self.policy = policy or GatingPolicy()
        self.controller = ParticipationController(registry, profiles, broadcaster, mini_apps)
        self.sender = sender
        self.self_id = self_id
        self._proposer = proposer
        self._proposer_timeout = proposer_timeout
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._creation_locks: Dict[str, asyncio.Lock] = {}

    @classmethod
    def from_settings(
        cls,
        *,
        sender: MessageSender | None = None,
        proposer: QuestProposer | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> QuestOrchestrator:
        clock = clock or (lambda: datetime.now(timezone.utc))
        return cls(
            tracker=ConversationSignalTracker(
                window=timedelta(minutes=settings.ACTIVITY_WINDOW_MINUTES), clock=clock
            ),
            registry=QuestRegistry(clock=clock),
            profiles=UserProfileStore(clock=clock),
            mini_apps=MiniAppLifecycleManager(settings.MINIAPP_BASE_URL, clock=clock),
            broadcaster=EventBroadcaster(settings.SUBSCRIBER_QUEUE_SIZE),
            proposer=proposer or TemplateQuestProposer(),
            personas=PersonaSelector(),
            policy=GatingPolicy.from_settings(),
            sender=sender,
            clock=clock,
            proposer_timeout=settings.PROPOSER_TIMEOUT_SECONDS,
        )

    # ------- Gating / persona -------

    def should_create_quest(self, conversation_id: str) -> bool:
        snapshot = self.tracker.snapshot(conversation_id, now=self._clock())
        return self.policy.allows(snapshot, self.registry.has_active(conversation_id))

    def select_persona(self, conversation_id: str) -> Persona:
        return self.personas.select(self.tracker.recent_text(conversation_id))

    def member_changed(self, conversation_id: str, member_count: int) -> None:
        self.tracker.member_changed(conversation_id, member_count)

    # ------- Message stream -------

    async def handle_message(self, message: ChatMessage) -> Optional[Quest]:
        """Process one inbound message. Never raises."""

        try:
            if self.self_id is not None and message.sender_id == self.self_id:
                return None
            self.tracker.observe(message.conversation_id, message, message.member_count)
            if not self.should_create_quest(message.conversation_id):
                return None
            logger.info("Triggering quest creation for conversation %s", message.conversation_id)
            return await self.create_quest_for_conversation(message.conversation_id)
        except QuestArenaError as exc:
            logger.info(
                "No quest for conversation %s this cycle: %s",
                message.conversation_id,
                exc.message,
            )
        except Exception:
            logger.exception(
                "Error handling message from %s in %s", message.sender_id, message.conversation_id
            )
        return None

    async def consume(
        self,
        stream_factory: StreamFactory,
        restart_delay: float = settings.STREAM_RESTART_DELAY_SECONDS,
        max_restarts: int | None = None,
    ) -> None:
        """Drain the inbound stream, reopening it after transport failures."""

        restarts = 0
        while True:
            try:
                async for message in stream_factory():
                    await self.handle_message(message)
                return
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Message stream failed; restarting in %.1fs", restart_delay)
                restarts += 1
                if max_restarts is not None and restarts > max_restarts:
                    raise
                await asyncio.sleep(restart_delay)

    # ------- Creation -------

    def _creation_lock(self, conversation_id: str) -> asyncio.Lock:
        lock = self._creation_locks.get(conversation_id)
        if lock is None:
            lock = self._creation_locks.setdefault(conversation_id, asyncio.Lock())
        return lock

    async def _propose(self, persona: Persona, conversation_id: str) -> QuestDefinition:
        snapshot = self.tracker.snapshot(conversation_id, now=self._clock())
        try:
            proposal = await asyncio.wait_for(
                self._proposer.propose(
                    persona,
                    snapshot,
                    self.tracker.recent_summary(conversation_id),
                    snapshot.member_count,
                ),
                timeout=self._proposer_timeout,
            )
        except asyncio.TimeoutError as exc:
            raise ProposerUnavailable(
                f"proposer timed out after {self._proposer_timeout}s"
            ) from exc
        except QuestArenaError:
            raise
        except Exception as exc:
            raise ProposerUnavailable(f"proposer failed: {exc!r}") from exc

        if proposal is None:
            raise ProposerUnavailable("proposer returned no quest")
        if isinstance(proposal, QuestDefinition):
            return proposal
        return QuestDefinition.from_dict(proposal)

    async def create_quest_for_conversation(
        self, conversation_id: str, persona: Persona | None = None
    ) -> Quest:
        """Propose, register, launch and announce a quest.

        Raises ``QuestAlreadyActive``, ``ProposerUnavailable`` or
        ``InvalidQuestDefinition``; nothing is registered on failure.
        """

        async with self._creation_lock(conversation_id):
            if self.registry.has_active(conversation_id):
                raise QuestAlreadyActive(conversation_id)

            persona = persona or self.select_persona(conversation_id)
            definition = await self._propose(persona, conversation_id)
            try:
                quest = self.registry.create(definition, conversation_id, persona=persona.name)
            except InvalidQuestDefinition:
                logger.warning(
                    "Discarding invalid proposal from %s for %s", persona.name, conversation_id
                )
                raise
            self.tracker.reset(conversation_id, now=quest.created_at)

        record = self.mini_apps.launch(quest)
        self.broadcaster.publish(
            Event(
                EventType.QUEST_CREATED,
                {
                    "quest": quest,
                    "conversationId": conversation_id,
                    "questMaster": persona.name,
                    "miniApp": record,
                },
            )
        )
        await self._announce(quest, persona, record.url)
        return quest

    async def trigger_quest_creation(
        self, conversation_id: str, persona_name: str | None = None
    ) -> Quest:
        """Operator override: skip the gating thresholds, keep one active quest."""

        persona = None
        if persona_name:
            persona = self.personas.get(persona_name)
            if persona is None:
                raise InvalidQuestDefinition(f"Unknown quest master: {persona_name}")
        return await self.create_quest_for_conversation(conversation_id, persona)

    async def _announce(self, quest: Quest, persona: Persona, url: str) -> None:
        if self.sender is None:
            return
        try:
            await self.sender.send(quest.conversation_id, format_announcement(persona, quest, url))
        except Exception as exc:
            logger.warning("Failed to announce quest %s: %s", quest.quest_id, exc)

    # ------- Client operations -------

    def list_active_quests(self, conversation_id: str | None = None) -> List[Quest]:
        return self.registry.list_active(conversation_id)

    def get_quest(self, quest_id: str) -> Quest:
        quest = self.registry.get(quest_id)
        if quest is None:
            raise QuestNotFound(quest_id)
        return quest

    def get_mini_app(self, quest_id: str) -> Optional[MiniAppRecord]:
        return self.mini_apps.get(quest_id)

    def join(self, quest_id: str, user_id: str) -> bool:
        return self.controller.join(quest_id, user_id)

    def leave(self, quest_id: str, user_id: str) -> bool:
        return self.controller.leave(quest_id, user_id)

    def complete(self, quest_id: str, user_id: str, result: Any = None) -> QuestCompletion:
        return self.controller.complete(quest_id, user_id, result)

    def get_user_stats(self, user_id: str) -> UserProfile:
        return self.profiles.get_or_create(user_id)

    def leaderboard(self, limit: int = 10) -> List[UserProfile]:
        return self.profiles.leaderboard(limit)

    def user_history(self, user_id: str) -> List[QuestCompletion]:
        return self.profiles.history(user_id)

    def quest_analytics(self) -> Dict[str, Any]:
        quests = self.registry.all_quests()
        completions = self.profiles.history()
        active = [q for q in quests if q.is_active]
        return {
            "totalQuests": len(quests),
            "activeQuests": len(active),
            "completedQuests": len(completions),
            "activeUsers": len({c.participant_id for c in completions}),
            "averageXpPerQuest": (
                sum(c.rewards.xp for c in completions) / len(completions) if completions else 0
            ),
            "questTypeDistribution": dict(Counter(q.type.value for q in quests)),
        }

    def health(self) -> Dict[str, Any]:
        return {
            "status": "ok",
            "questMasters": self.personas.names,
            "activeQuests": len(self.registry.list_active()),
        }

    # ------- Expiry -------

    def expire_due(self, now: datetime | None = None) -> List[Quest]:
        now = now or self._clock()
        expired = self.registry.expire_due(now)
        for quest in expired:
            self.mini_apps.close(str(quest.quest_id))
            self.broadcaster.publish(
                Event(EventType.QUEST_EXPIRED, {"questId": str(quest.quest_id), "quest": quest})
            )
        self.mini_apps.expire_due(now)
        return expired

    async def run_expiry_loop(self, interval: float) -> None:
        logger.info("Expiry sweep running every %.1fs", interval)
        while True:
            await asyncio.sleep(interval)
            try:
                self.expire_due()
            except Exception:
                logger.exception("Expiry sweep failed")
