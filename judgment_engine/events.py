# judgment_engine/events.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from threading import Lock
from typing import Dict, List, Optional, Protocol, Tuple, Union, runtime_checkable

from .cards import Card
from .snapshot import GameSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameStateChanged:
    game_id: str
    snapshot: GameSnapshot


@dataclass(frozen=True)
class TrickResolved:
    game_id: str
    winner_id: str
    winner_name: str
    # (player_id, card) pairs in play order
    cards: Tuple[Tuple[str, Card], ...] = ()


@dataclass(frozen=True)
class RoundCompleted:
    game_id: str
    round_number: int
    next_round: Optional[int]
    scores: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class GameFinished:
    game_id: str
    winner_id: str
    winner_name: str
    final_scores: Dict[str, int] = field(default_factory=dict)
    # Everyone sharing the top score, in seating order.
    winner_ids: Tuple[str, ...] = ()


GameEvent = Union[GameStateChanged, TrickResolved, RoundCompleted, GameFinished]


@runtime_checkable
class GameObserver(Protocol):
    """Receives every event published for every game, in publication order."""

    def notify(self, event: GameEvent) -> None:
        raise NotImplementedError


class EventLog:
    """Collects events until a consumer drains them."""

    def __init__(self) -> None:
        self._events: List[GameEvent] = []
        self._lock = Lock()

    def notify(self, event: GameEvent) -> None:
        with self._lock:
            self._events.append(event)

    def drain(self) -> List[GameEvent]:
        with self._lock:
            events = list(self._events)
            self._events.clear()
        return events

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


class LoggingObserver:
    """Writes one log line per event."""

    def __init__(self, level: int = logging.INFO) -> None:
        self.level = level

    def notify(self, event: GameEvent) -> None:
        if isinstance(event, GameStateChanged):
            snap = event.snapshot
            logger.debug(
                "Game %s: %s, round %d/%d, turn %s",
                event.game_id,
                snap.status.value,
                snap.current_round,
                snap.total_rounds,
                snap.current_turn,
            )
        elif isinstance(event, TrickResolved):
            logger.log(
                self.level,
                "Game %s: trick won by %s",
                event.game_id,
                event.winner_name,
            )
        elif isinstance(event, RoundCompleted):
            logger.log(
                self.level,
                "Game %s: round %d complete, scores %s",
                event.game_id,
                event.round_number,
                event.scores,
            )
        elif isinstance(event, GameFinished):
            logger.log(
                self.level,
                "Game %s finished; winner %s, final scores %s",
                event.game_id,
                event.winner_name,
                event.final_scores,
            )
