# judgment_engine/agents/heuristic_agent.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..cards import SUIT_ORDER, Card, Suit, trick_rank
from .base import JudgmentAgent

HIGH_CARD_MIN_VALUE = 11  # Jack and above


def choose_bid(
    hand: Sequence[Card],
    trump_suit: Suit,
    round_size: int,
    prior_bids: Sequence[int],
    is_last_bidder: bool,
) -> int:
    """
    Estimate how many tricks `hand` can take.

    - Every trump and every non-trump J/Q/K/A counts as one trick.
    - If anyone already bid more than half the round, knock one off.
    - As last bidder, step one away from the total that would equal the
      round size.
    """
    trumps = sum(1 for c in hand if c.suit == trump_suit)
    high_cards = sum(
        1 for c in hand
        if c.suit != trump_suit and c.value >= HIGH_CARD_MIN_VALUE
    )
    bid = min(trumps + high_cards, len(hand))

    if bid > 0 and any(b > round_size / 2 for b in prior_bids):
        bid -= 1

    if is_last_bidder and sum(prior_bids) + bid == round_size:
        if bid > 0:
            bid -= 1
        elif bid < len(hand):
            bid += 1

    return max(0, min(bid, len(hand)))


def _lowest(cards: Sequence[Card], trump_suit: Suit) -> Card:
    # Lowest value first; among equal values keep trump back; then suit order.
    return min(
        cards,
        key=lambda c: (c.value, c.suit == trump_suit, SUIT_ORDER.index(c.suit)),
    )


def _best_in_trick(
    trick_cards: Sequence[Card],
    trump_suit: Suit,
    lead_suit: Suit,
) -> Optional[Card]:
    best: Optional[Card] = None
    for card in trick_cards:
        if best is None or trick_rank(card, trump_suit, lead_suit) > trick_rank(best, trump_suit, lead_suit):
            best = card
    return best


def _beats(card: Card, best: Optional[Card], trump_suit: Suit, lead_suit: Suit) -> bool:
    if best is None:
        return True
    return trick_rank(card, trump_suit, lead_suit) > trick_rank(best, trump_suit, lead_suit)


def choose_card(
    hand: Sequence[Card],
    trick_cards: Sequence[Card],
    trump_suit: Suit,
    lead_suit: Optional[Suit] = None,
    bid_satisfied: bool = False,
) -> Card:
    """
    Pick a card to play.

    Following suit, play the cheapest card that takes the lead (or the
    lowest one if it cannot win or already has its bid). Void in the lead
    suit, trump as cheaply as possible while tricks are still needed,
    otherwise throw the lowest card. Leading, play the lowest card.
    """
    if not hand:
        raise ValueError("Cannot choose a card from an empty hand")

    if lead_suit is None and trick_cards:
        lead_suit = trick_cards[0].suit

    if lead_suit is not None:
        best = _best_in_trick(trick_cards, trump_suit, lead_suit)

        follow = [c for c in hand if c.suit == lead_suit]
        if follow:
            if not bid_satisfied:
                winning = [c for c in follow if _beats(c, best, trump_suit, lead_suit)]
                if winning:
                    return _lowest(winning, trump_suit)
            return _lowest(follow, trump_suit)

        if not bid_satisfied:
            winning_trumps = [
                c for c in hand
                if c.suit == trump_suit and _beats(c, best, trump_suit, lead_suit)
            ]
            if winning_trumps:
                return _lowest(winning_trumps, trump_suit)

    return _lowest(hand, trump_suit)


@dataclass
class HeuristicAgent(JudgmentAgent):
    """Deterministic opponent built on `choose_bid` and `choose_card`."""

    def choose_bid(self, observation: Dict[str, Any]) -> int:
        prior_bids: List[int] = observation["prior_bids"]
        return choose_bid(
            observation["hand"],
            observation["trump_suit"],
            observation["cards_per_player"],
            prior_bids,
            observation["is_last_bidder"],
        )

    def choose_card(self, observation: Dict[str, Any]) -> Card:
        bid = observation.get("bid")
        tricks_won = observation.get("tricks_won", 0)
        return choose_card(
            observation["hand"],
            observation["current_trick"],
            observation["trump_suit"],
            observation.get("lead_suit"),
            bid_satisfied=bid is not None and tricks_won >= bid,
        )
