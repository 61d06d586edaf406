# judgment_engine/rules.py
from __future__ import annotations

import math
from typing import Dict, List, Optional

from .cards import SUIT_ORDER, Card, Suit, trick_rank
from .state import GameState, GameStatus, PlayerState, Trick

DECK_SIZE = 52
MIN_PLAYERS = 3
MAX_PLAYERS = 8
MIN_ROUNDS = 6
MAX_CARDS_PER_PLAYER = 13

MATCH_BONUS = 10

CARD_NOT_IN_HAND = "Card not in hand"


# --------------------------------------------------------------------------- #
# Trump cycle and round schedule                                              #
# --------------------------------------------------------------------------- #


def trump_for_round(round_number: int) -> Suit:
    """Trump cycles SPADES, DIAMONDS, CLUBS, HEARTS starting at round 1."""
    if round_number < 1:
        raise ValueError("Rounds are numbered from 1")
    return SUIT_ORDER[(round_number - 1) % len(SUIT_ORDER)]


def max_cards_per_player(num_players: int) -> int:
    return min(MAX_CARDS_PER_PLAYER, DECK_SIZE // num_players)


def max_rounds(num_players: int) -> int:
    """floor(52 / n * 2 - 1), computed in integers."""
    return (2 * DECK_SIZE - num_players) // num_players


def clamp_total_rounds(total_rounds: int, num_players: int) -> int:
    return max(MIN_ROUNDS, min(total_rounds, max_rounds(num_players)))


def cards_for_round(round_number: int, total_rounds: int, num_players: int) -> int:
    """
    Hand size for a round: climb from 1 to a peak, hold it, then descend to 1.

    The peak is the smaller of the per-table card cap and half the game
    length, so the climb and the descent mirror each other.
    """
    if not 1 <= round_number <= total_rounds:
        raise ValueError(f"Round {round_number} outside 1..{total_rounds}")
    peak = min(max_cards_per_player(num_players), math.ceil(total_rounds / 2))
    if round_number <= peak:
        return round_number
    if round_number <= total_rounds - peak + 1:
        return peak
    return total_rounds - round_number + 1


# --------------------------------------------------------------------------- #
# Bidding                                                                     #
# --------------------------------------------------------------------------- #


def _is_last_bidder(game: GameState, player: PlayerState) -> bool:
    return not player.has_bid and game.bids_placed == game.num_players - 1


def _sum_of_other_bids(game: GameState, player: PlayerState) -> int:
    return sum(
        p.current_bid for p in game.players
        if p.id != player.id and p.current_bid is not None
    )


def bid_rejection_reason(game: GameState, player: PlayerState, bid: int) -> Optional[str]:
    """Return why `bid` is illegal for `player`, or None if it is legal."""
    if game.status != GameStatus.BIDDING:
        return "Not in bidding phase"
    if game.current_turn != player.id:
        return "Not your turn to bid"
    if player.has_bid:
        return "You have already bid this round"
    if isinstance(bid, bool) or not isinstance(bid, int):
        return "Bid must be a whole number"
    if bid < 0 or bid > game.cards_per_player:
        return f"Bid must be between 0 and {game.cards_per_player}"
    if _is_last_bidder(game, player):
        if _sum_of_other_bids(game, player) + bid == game.cards_per_player:
            return (
                f"Last bidder cannot bid {bid}: total bids cannot equal "
                f"{game.cards_per_player}"
            )
    return None


def is_valid_bid(game: GameState, player: PlayerState, bid: int) -> bool:
    return bid_rejection_reason(game, player, bid) is None


def forbidden_bid(game: GameState) -> Optional[int]:
    """The one bid the last bidder may not make, when bidding is down to them."""
    if game.status != GameStatus.BIDDING:
        return None
    player = game.current_player
    if player is None or not _is_last_bidder(game, player):
        return None
    forbidden = game.cards_per_player - _sum_of_other_bids(game, player)
    if 0 <= forbidden <= game.cards_per_player:
        return forbidden
    return None


# --------------------------------------------------------------------------- #
# Card play                                                                   #
# --------------------------------------------------------------------------- #


def legal_cards(hand: List[Card], lead_suit: Optional[Suit]) -> List[Card]:
    """
    Cards in `hand` that may be played.

    - No lead suit yet (leading the trick): anything.
    - Holding the lead suit: only cards of that suit.
    - Otherwise: anything, trump included.
    """
    if lead_suit is None:
        return list(hand)
    follow_suit = [c for c in hand if c.suit == lead_suit]
    return follow_suit if follow_suit else list(hand)


def card_rejection_reason(game: GameState, player: PlayerState, card: Card) -> Optional[str]:
    """Return why `card` may not be played by `player` now, or None if it may."""
    if game.status != GameStatus.PLAYING:
        return "Not in playing phase"
    if game.resolution_in_progress:
        return "Previous trick is still being resolved"
    if game.current_turn != player.id:
        return "Not your turn to play"
    if card not in player.hand:
        return CARD_NOT_IN_HAND
    if card not in legal_cards(player.hand, game.current_lead_suit):
        return f"You must follow suit ({game.current_lead_suit.name.title()})"
    return None


def can_play_card(game: GameState, player: PlayerState, card: Card) -> bool:
    return card_rejection_reason(game, player, card) is None


# --------------------------------------------------------------------------- #
# Trick resolution and scoring                                                #
# --------------------------------------------------------------------------- #


def winner_of_trick(trick: Trick, trump_suit: Suit) -> str:
    """
    Determine the winner of a trick.

    Highest trump wins; failing that, highest card of the lead suit. The
    first card played sets the lead suit when the trick does not record one.
    """
    if not trick.plays:
        raise ValueError("Cannot determine winner of an empty trick")

    lead_suit = trick.lead_suit or trick.plays[0][1].suit
    best_player, best_card = trick.plays[0]
    for player_id, card in trick.plays[1:]:
        if trick_rank(card, trump_suit, lead_suit) > trick_rank(best_card, trump_suit, lead_suit):
            best_player, best_card = player_id, card
    return best_player


def score_round(players: List[PlayerState]) -> Dict[str, int]:
    """
    Score a round:

    - tricks won == bid: 10 + tricks won
    - anything else: 0
    """
    deltas: Dict[str, int] = {}
    for p in players:
        won = p.tricks_won_this_round
        if p.current_bid is not None and won == p.current_bid:
            deltas[p.id] = MATCH_BONUS + won
        else:
            deltas[p.id] = 0
    return deltas


def determine_winners(players: List[PlayerState]) -> List[str]:
    """Ids of every player sharing the top score, in seating order."""
    if not players:
        return []
    top = max(p.score for p in players)
    return [p.id for p in players if p.score == top]
