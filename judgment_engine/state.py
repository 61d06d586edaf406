# judgment_engine/state.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import enum

from .cards import Card, Suit


class GameStatus(enum.Enum):
    WAITING = "WAITING"
    BIDDING = "BIDDING"
    PLAYING = "PLAYING"
    FINISHED = "FINISHED"


@dataclass
class PlayerState:
    id: str
    name: str
    is_ai: bool = False
    is_host: bool = False
    hand: List[Card] = field(default_factory=list)
    score: int = 0
    current_bid: Optional[int] = None  # None until the player bids this round
    tricks_won_this_round: int = 0
    # Score before the most recent round was scored.
    previous_score: int = 0

    @property
    def has_bid(self) -> bool:
        return self.current_bid is not None


@dataclass
class Trick:
    # (player_id, card) pairs in play order
    plays: List[Tuple[str, Card]] = field(default_factory=list)
    lead_suit: Optional[Suit] = None
    winner_id: Optional[str] = None

    @property
    def cards(self) -> List[Card]:
        return [card for _, card in self.plays]


@dataclass
class RoundResult:
    round_number: int
    cards_per_player: int
    trump_suit: Suit
    bids: Dict[str, int]
    tricks_won: Dict[str, int]
    deltas: Dict[str, int]
    scores: Dict[str, int]


@dataclass
class GameState:
    id: str
    players: List[PlayerState]
    total_rounds: int
    current_round: int = 1
    trump_suit: Suit = Suit.SPADES
    cards_per_player: int = 0
    status: GameStatus = GameStatus.WAITING
    current_turn: Optional[str] = None
    current_trick: Trick = field(default_factory=Trick)
    completed_tricks: List[Trick] = field(default_factory=list)
    turn_count: int = 0
    # Transient notification fields.
    trick_winner: Optional[str] = None
    round_finished: bool = False
    # Set between deciding a trick and clearing it from the table.
    resolution_in_progress: bool = False
    winner_ids: List[str] = field(default_factory=list)
    round_history: List[RoundResult] = field(default_factory=list)

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def current_lead_suit(self) -> Optional[Suit]:
        return self.current_trick.lead_suit

    @property
    def winner(self) -> Optional[PlayerState]:
        if not self.winner_ids:
            return None
        return self.find_player(self.winner_ids[0])

    def find_player(self, player_id: Optional[str]) -> Optional[PlayerState]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def seat_of(self, player_id: Optional[str]) -> int:
        """Seat index of player_id, or -1 if nobody has that id."""
        for i, p in enumerate(self.players):
            if p.id == player_id:
                return i
        return -1

    @property
    def current_player(self) -> Optional[PlayerState]:
        return self.find_player(self.current_turn)

    @property
    def bids_placed(self) -> int:
        return sum(1 for p in self.players if p.has_bid)
