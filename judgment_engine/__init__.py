from .cards import Card, Deck, Suit, compare_for_trick, create_deck
from .config import Settings, configure_logging
from .engine import GameEngine
from .errors import (
    GameNotFoundError,
    IllegalCardReferenceError,
    InvalidActionError,
    JudgmentError,
    NotFoundError,
    PlayerNotFoundError,
    ResolutionPendingError,
)
from .events import (
    EventLog,
    GameFinished,
    GameObserver,
    GameStateChanged,
    LoggingObserver,
    RoundCompleted,
    TrickResolved,
)
from .service import GameService
from .snapshot import GameSnapshot, PlayerSnapshot, snapshot_to_dict
from .state import GameStatus

__all__ = [
    "Card",
    "Deck",
    "Suit",
    "compare_for_trick",
    "create_deck",
    "Settings",
    "configure_logging",
    "GameEngine",
    "GameService",
    "GameSnapshot",
    "PlayerSnapshot",
    "snapshot_to_dict",
    "GameStatus",
    "EventLog",
    "GameObserver",
    "GameStateChanged",
    "TrickResolved",
    "RoundCompleted",
    "GameFinished",
    "LoggingObserver",
    "JudgmentError",
    "NotFoundError",
    "GameNotFoundError",
    "PlayerNotFoundError",
    "InvalidActionError",
    "IllegalCardReferenceError",
    "ResolutionPendingError",
]
