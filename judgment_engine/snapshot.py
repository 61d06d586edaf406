# judgment_engine/snapshot.py
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .cards import Card, Suit, card_to_dict
from .rules import forbidden_bid
from .scoreboard import build_round_score_rows, standings
from .state import GameState, GameStatus, PlayerState, RoundResult


@dataclass(frozen=True)
class PlayerSnapshot:
    id: str
    name: str
    is_ai: bool
    is_host: bool
    hand: Tuple[Card, ...]
    score: int
    current_bid: Optional[int]
    tricks_won_this_round: int
    previous_score: int

    @property
    def hand_size(self) -> int:
        return len(self.hand)


@dataclass(frozen=True)
class RoundSummary:
    round_number: int
    cards_per_player: int
    trump_suit: Suit
    bids: Mapping[str, int]
    tricks_won: Mapping[str, int]
    deltas: Mapping[str, int]
    scores: Mapping[str, int]


@dataclass(frozen=True)
class GameSnapshot:
    """Read-only copy of a game, safe to hand to other threads and tasks."""

    id: str
    players: Tuple[PlayerSnapshot, ...]
    current_round: int
    total_rounds: int
    trump_suit: Suit
    cards_per_player: int
    status: GameStatus
    current_turn: Optional[str]
    current_trick: Tuple[Tuple[str, Card], ...]
    current_lead_suit: Optional[Suit]
    turn_count: int
    trick_winner: Optional[str]
    round_finished: bool
    resolution_in_progress: bool
    forbidden_bid: Optional[int]
    winner_ids: Tuple[str, ...]
    round_history: Tuple[RoundSummary, ...]

    def player(self, player_id: str) -> Optional[PlayerSnapshot]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    @property
    def winner(self) -> Optional[PlayerSnapshot]:
        if not self.winner_ids:
            return None
        return self.player(self.winner_ids[0])


def _snapshot_player(player: PlayerState) -> PlayerSnapshot:
    return PlayerSnapshot(
        id=player.id,
        name=player.name,
        is_ai=player.is_ai,
        is_host=player.is_host,
        hand=tuple(player.hand),
        score=player.score,
        current_bid=player.current_bid,
        tricks_won_this_round=player.tricks_won_this_round,
        previous_score=player.previous_score,
    )


def _snapshot_round(result: RoundResult) -> RoundSummary:
    return RoundSummary(
        round_number=result.round_number,
        cards_per_player=result.cards_per_player,
        trump_suit=result.trump_suit,
        bids=MappingProxyType(dict(result.bids)),
        tricks_won=MappingProxyType(dict(result.tricks_won)),
        deltas=MappingProxyType(dict(result.deltas)),
        scores=MappingProxyType(dict(result.scores)),
    )


def snapshot_game(game: GameState) -> GameSnapshot:
    """Copy everything out of the live game; nothing in the result aliases it."""
    return GameSnapshot(
        id=game.id,
        players=tuple(_snapshot_player(p) for p in game.players),
        current_round=game.current_round,
        total_rounds=game.total_rounds,
        trump_suit=game.trump_suit,
        cards_per_player=game.cards_per_player,
        status=game.status,
        current_turn=game.current_turn,
        current_trick=tuple(game.current_trick.plays),
        current_lead_suit=game.current_lead_suit,
        turn_count=game.turn_count,
        trick_winner=game.trick_winner,
        round_finished=game.round_finished,
        resolution_in_progress=game.resolution_in_progress,
        forbidden_bid=forbidden_bid(game),
        winner_ids=tuple(game.winner_ids),
        round_history=tuple(_snapshot_round(r) for r in game.round_history),
    )


def snapshot_to_dict(
    snapshot: GameSnapshot,
    viewer_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Convert a snapshot to a JSON-serializable dict for the transport layer.

    When `viewer_id` is given, only that participant's hand is included;
    everyone else shows just a hand size.
    """
    players = []
    for p in snapshot.players:
        show_hand = viewer_id is None or viewer_id == p.id
        players.append(
            {
                "id": p.id,
                "name": p.name,
                "isAI": p.is_ai,
                "isHost": p.is_host,
                "cards": [card_to_dict(c) for c in p.hand] if show_hand else None,
                "handSize": p.hand_size,
                "score": p.score,
                "previousScore": p.previous_score,
                "currentBid": p.current_bid,
                "tricks": p.tricks_won_this_round,
            }
        )

    winner = snapshot.winner
    return {
        "id": snapshot.id,
        "players": players,
        "currentRound": snapshot.current_round,
        "totalRounds": snapshot.total_rounds,
        "trumpSuit": snapshot.trump_suit.value,
        "cardsPerRound": snapshot.cards_per_player,
        "status": snapshot.status.value,
        "currentTurn": snapshot.current_turn,
        "currentTrick": [
            dict(card_to_dict(card), playedBy=player_id)
            for player_id, card in snapshot.current_trick
        ],
        "currentSuit": (
            snapshot.current_lead_suit.value
            if snapshot.current_lead_suit is not None
            else None
        ),
        "turnCount": snapshot.turn_count,
        "trickWinner": snapshot.trick_winner,
        "roundFinished": snapshot.round_finished,
        "resolutionInProgress": snapshot.resolution_in_progress,
        "forbiddenBid": snapshot.forbidden_bid,
        "winner": (
            {"id": winner.id, "name": winner.name, "score": winner.score}
            if winner is not None
            else None
        ),
        "winnerIds": list(snapshot.winner_ids),
        "standings": standings(snapshot),
        "roundHistory": build_round_score_rows(snapshot),
    }
