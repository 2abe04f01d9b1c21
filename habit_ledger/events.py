"""
Engine events consumed by the presentation layer (celebrations, banners).

The engine never renders anything itself: it emits plain event records to
whatever callbacks were subscribed on the dispatcher it was given.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Union

logger = logging.getLogger("habit_ledger.events")


@dataclass(frozen=True)
class AchievementUnlocked:
    achievement_id: int
    habit_id: int
    kind: str
    requirement: int
    name: str
    points: int
    unlocked_at: datetime


@dataclass(frozen=True)
class LevelUp:
    old_level: int
    new_level: int
    total_points: int


Event = Union[AchievementUnlocked, LevelUp]
Listener = Callable[[Event], None]


class EventDispatcher:
    """Fan-out of engine events to subscribed callbacks"""

    def __init__(self):
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def emit(self, event: Event) -> None:
        logger.debug(f"Emitting {type(event).__name__}: {event}")
        for listener in list(self._listeners):
            listener(event)
