from __future__ import annotations

import copy
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional
from urllib.parse import quote

from questarena_core.domain.models.MiniAppModel import MiniAppRecord, MiniAppStatus
from questarena_core.domain.models.QuestModel import Quest
from questarena_core.utils.logging import get_logger

logger = get_logger(__name__)


def mini_app_url(base_url: str, quest: Quest) -> str:
    return f"{base_url.rstrip('/')}/quest/{quote(str(quest.quest_id))}?type={quest.type.value}"


class MiniAppLifecycleManager:
    """Satellite records mirroring each quest's public-facing state.

    The participant list here is a cache of the registry's; the
    participation controller keeps both in step. Unknown quest ids are
    never an error: every operation reports ``False``/``None`` instead.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._base_url = base_url
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._records: Dict[str, MiniAppRecord] = {}
        self._lock = threading.RLock()

    def launch(self, quest: Quest) -> MiniAppRecord:
        launched_at = self._clock()
        config = dict(quest.mini_app_config.config)
        config.update(
            title=quest.title,
            description=quest.description,
            difficulty=quest.difficulty.value,
            duration=quest.duration_minutes,
            rewards={
                "xp": quest.rewards.xp,
                "tokens": quest.rewards.tokens,
                "badges": list(quest.rewards.badges),
            },
        )
        record = MiniAppRecord(
            quest_id=str(quest.quest_id),
            conversation_id=quest.conversation_id,
            url=mini_app_url(self._base_url, quest),
            app_type=quest.mini_app_config.type,
            config=config,
            launched_at=launched_at,
            # own timer, measured from launch
            expires_at=launched_at + (quest.expires_at - quest.created_at),
            participants=list(quest.participants),
        )
        with self._lock:
            self._records[record.quest_id] = record
        logger.structured("miniapp_launched", quest_id=record.quest_id, url=record.url)
        return copy.deepcopy(record)

    def get(self, quest_id: str) -> Optional[MiniAppRecord]:
        with self._lock:
            record = self._records.get(str(quest_id))
            return copy.deepcopy(record) if record else None

    def list_active(self) -> List[MiniAppRecord]:
        with self._lock:
            return [copy.deepcopy(r) for r in self._records.values() if r.is_active]

    def add_participant(self, quest_id: str, user_id: str) -> bool:
        with self._lock:
            record = self._records.get(str(quest_id))
            if record is None or user_id in record.participants:
                return False
            record.participants.append(user_id)
            return True

    def remove_participant(self, quest_id: str, user_id: str) -> bool:
        with self._lock:
            record = self._records.get(str(quest_id))
            if record is None or user_id not in record.participants:
                return False
            record.participants.remove(user_id)
            return True

    def close(self, quest_id: str) -> bool:
        """Force the record to expired. Returns True only on the first close."""
        with self._lock:
            record = self._records.get(str(quest_id))
            if record is None or not record.is_active:
                return False
            record.status = MiniAppStatus.EXPIRED
            record.closed_at = self._clock()
        logger.structured("miniapp_closed", quest_id=str(quest_id))
        return True

    def expire_due(self, now: datetime | None = None) -> List[str]:
        now = now or self._clock()
        expired = []
        with self._lock:
            for record in self._records.values():
                if record.is_active and record.expires_at <= now:
                    record.status = MiniAppStatus.EXPIRED
                    record.closed_at = now
                    expired.append(record.quest_id)
        if expired:
            logger.structured("miniapps_expired", quest_ids=expired)
        return expired
