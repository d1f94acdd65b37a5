from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from questarena_api.schemas import MiniApp as APIMiniApp
from questarena_api.schemas import MiniAppConfig as APIMiniAppConfig
from questarena_api.schemas import ParticipantLimits as APILimits
from questarena_api.schemas import Quest as APIQuest
from questarena_api.schemas import QuestCompletion as APICompletion
from questarena_api.schemas import Rewards as APIRewards
from questarena_api.schemas import UserStats as APIUserStats

# ---- Domain models ----
from questarena_core.domain.models.MiniAppModel import MiniAppRecord as DMiniApp
from questarena_core.domain.models.QuestModel import Quest as DQuest
from questarena_core.domain.models.QuestModel import QuestRewards as DRewards
from questarena_core.domain.models.UserProfileModel import QuestCompletion as DCompletion
from questarena_core.domain.models.UserProfileModel import UserProfile as DProfile
from questarena_core.services.event_broadcaster import Event

# ---------- helpers ----------


def _utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Return a timezone-aware UTC datetime or None."""
    if dt is None:
        return None
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _rewards(r: DRewards) -> APIRewards:
    return APIRewards(xp=r.xp, tokens=r.tokens, badges=list(r.badges))


# ---------- quests ----------


def quest_to_api(q: DQuest) -> APIQuest:
    return APIQuest(
        quest_id=str(q.quest_id),
        conversation_id=q.conversation_id,
        quest_master=q.persona,
        type=q.type.value,
        title=q.title,
        description=q.description,
        difficulty=q.difficulty.value,
        duration_minutes=q.duration_minutes,
        requirements=list(q.requirements),
        participant_limits=APILimits(
            min=q.participant_limits.min, max=q.participant_limits.max
        ),
        rewards=_rewards(q.rewards),
        mini_app_config=APIMiniAppConfig(
            type=q.mini_app_config.type.value, config=dict(q.mini_app_config.config)
        ),
        status=q.status.value,
        created_at=_utc(q.created_at),
        expires_at=_utc(q.expires_at),
        ended_at=_utc(q.ended_at),
        participants=list(q.participants),
    )


# ---------- users ----------


def profile_to_api(p: DProfile) -> APIUserStats:
    return APIUserStats(
        user_id=p.user_id,
        level=p.level,
        xp=p.xp,
        social_score=p.social_score,
        quests_completed=p.quests_completed,
        completed_quest_ids=sorted(p.completed_quest_ids),
        preferences=sorted(t.value for t in p.preferences),
        last_active=_utc(p.last_active),
    )


def completion_to_api(c: DCompletion) -> APICompletion:
    return APICompletion(
        quest_id=c.quest_id,
        participant_id=c.participant_id,
        completed_at=_utc(c.completed_at),
        result=c.result,
        rewards=_rewards(c.rewards),
        new_level=c.new_level,
    )


# ---------- mini apps ----------


def miniapp_to_api(m: DMiniApp) -> APIMiniApp:
    return APIMiniApp(
        quest_id=m.quest_id,
        conversation_id=m.conversation_id,
        url=m.url,
        type=m.app_type.value,
        status=m.status.value,
        config=dict(m.config),
        participants=list(m.participants),
        launched_at=_utc(m.launched_at),
        expires_at=_utc(m.expires_at),
        closed_at=_utc(m.closed_at),
    )


# ---------- events ----------


def _jsonable(value: Any) -> Any:
    if isinstance(value, DQuest):
        return quest_to_api(value).model_dump(mode="json")
    if isinstance(value, DProfile):
        return profile_to_api(value).model_dump(mode="json")
    if isinstance(value, DCompletion):
        return completion_to_api(value).model_dump(mode="json")
    if isinstance(value, DMiniApp):
        return miniapp_to_api(value).model_dump(mode="json")
    if isinstance(value, datetime):
        return _utc(value).isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def event_to_message(event: Event) -> Dict[str, Any]:
    """Wire shape shared by every socket: ``{"type": ..., "data": {...}}``."""
    return {"type": event.type.value, "data": _jsonable(event.data)}
