from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    BATTLE_START = "battle_start"
    ROUND_START = "round_start"
    TURN_START = "turn_start"
    SKILL_TRIGGERED = "skill_triggered"
    DAMAGE = "damage"
    HEAL = "heal"
    MISS = "miss"
    BLOCK = "block"
    CRITICAL = "critical"
    DEATH = "death"
    FROZEN_SKIP = "frozen_skip"
    STATUS_APPLIED = "status_applied"
    STATUS_DAMAGE = "status_damage"
    STATUS_HEAL = "status_heal"
    REFLECT_DAMAGE = "reflect_damage"
    SURVIVE_LETHAL = "survive_lethal"
    REVIVE = "revive"
    BURN_EXPLODE = "burn_explode"
    FREEZE_SHATTER = "freeze_shatter"
    ROUND_END = "round_end"
    BATTLE_END = "battle_end"


@dataclass(frozen=True)
class BattleEvent:
    """A discrete combat occurrence for the presentation layer to replay.

    Only the fields relevant to ``type`` are populated; the rest stay None.
    """

    type: EventType
    actor_id: Optional[str] = None
    target_id: Optional[str] = None
    value: Optional[int] = None
    status_type: Optional[str] = None
    stacks: Optional[int] = None
    skill_name: Optional[str] = None
    element_effect: Optional[str] = None
    is_critical: Optional[bool] = None
    is_aoe: Optional[bool] = None
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly dict without unset fields."""
        out: Dict[str, Any] = {}
        for f in fields(self):
            v = getattr(self, f.name)
            if v is None:
                continue
            out[f.name] = v.value if isinstance(v, Enum) else v
        return out


class BattleLog:
    """In-memory, append-only record of battle events."""

    def __init__(self) -> None:
        self._events: List[BattleEvent] = []

    def add(self, event_type: EventType, **data: Any) -> BattleEvent:
        ev = BattleEvent(type=EventType(event_type), **data)
        self._events.append(ev)
        # Forward to standard logging for visibility if configured.
        if ev.type in (EventType.DEATH, EventType.BATTLE_END):
            logger.info("%s %s", ev.type.value, ev.to_dict())
        else:
            logger.debug("%s %s", ev.type.value, ev.to_dict())
        return ev

    def extend(self, events: Iterable[BattleEvent]) -> None:
        for ev in events:
            self._events.append(ev)

    def events(self) -> List[BattleEvent]:
        return list(self._events)

    def since(self, index: int) -> List[BattleEvent]:
        return list(self._events[index:])

    def of_type(self, event_type: EventType) -> List[BattleEvent]:
        return [e for e in self._events if e.type is EventType(event_type)]

    def __len__(self) -> int:
        return len(self._events)

    def clear(self) -> None:
        self._events.clear()


__all__ = ["EventType", "BattleEvent", "BattleLog"]
