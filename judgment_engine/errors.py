# judgment_engine/errors.py
from __future__ import annotations


class JudgmentError(Exception):
    """Base class for every failure surfaced by the engine."""


class NotFoundError(JudgmentError, LookupError):
    pass


class GameNotFoundError(NotFoundError):
    def __init__(self, game_id: str) -> None:
        super().__init__(f"Game not found: {game_id}")
        self.game_id = game_id


class PlayerNotFoundError(NotFoundError):
    def __init__(self, player_id: str) -> None:
        super().__init__(f"Player not found: {player_id}")
        self.player_id = player_id


class InvalidActionError(JudgmentError, ValueError):
    """A bid or card play was rejected by the rules (phase, turn, hook rule, suit)."""


class IllegalCardReferenceError(JudgmentError):
    """The played card is not in the player's hand (client and server disagree)."""


class ResolutionPendingError(JudgmentError):
    """
    A trick has been decided but not yet cleared.

    Callers should retry once the resolution window closes; this is not a
    rule violation.
    """
