from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from questarena_core.domain.id_utils import generate_postal_id, validate_postal_id


@dataclass(frozen=True, slots=True)
class EntityID:
    prefix: ClassVar[str] = "BASE"
    value: str | None = None

    def __post_init__(self) -> None:
        raw = self.value if self.value is not None else generate_postal_id(self.prefix)
        object.__setattr__(self, "value", self._normalize(raw))

    @classmethod
    def _normalize(cls, raw: Any) -> str:
        if isinstance(raw, EntityID):
            raw = raw.value

        raw_str = str(raw or "").strip().upper()
        if not raw_str:
            raise ValueError("ID value cannot be empty")

        candidate = raw_str if raw_str.startswith(cls.prefix) else f"{cls.prefix}{raw_str}"
        if not validate_postal_id(candidate, prefix=cls.prefix):
            raise ValueError(
                f"Invalid {cls.__name__}: expected {cls.prefix} followed by a postal body (e.g. A1B2C3)."
            )
        return candidate

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, raw: str) -> "EntityID":
        return cls(raw)

    @classmethod
    def generate(cls) -> "EntityID":
        return cls()


@dataclass(frozen=True, slots=True)
class QuestID(EntityID):
    prefix: ClassVar[str] = "QUES"
