# judgment_engine/cards.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
import enum
import random


class Suit(enum.Enum):
    # Declaration order is also the trump cycle order.
    SPADES = "SPADES"
    DIAMONDS = "DIAMONDS"
    CLUBS = "CLUBS"
    HEARTS = "HEARTS"


SUIT_ORDER: Tuple[Suit, ...] = tuple(Suit)

MIN_VALUE = 2
MAX_VALUE = 14  # Ace

FACE_NAMES = {11: "J", 12: "Q", 13: "K", 14: "A"}


@dataclass(frozen=True)
class Card:
    """
    A standard playing card.

    value runs 2..14 where 11=Jack, 12=Queen, 13=King and 14=Ace.
    """
    suit: Suit
    value: int

    def __post_init__(self) -> None:
        if not isinstance(self.suit, Suit):
            raise ValueError(f"Unknown suit {self.suit!r}")
        if not (MIN_VALUE <= self.value <= MAX_VALUE):
            raise ValueError("Card value must be between 2 and 14")

    def __str__(self) -> str:
        rank = FACE_NAMES.get(self.value, str(self.value))
        return f"{rank} of {self.suit.name.title()}"


def card_to_dict(card: Card) -> Dict[str, Any]:
    """Convert a Card to a JSON-serializable dict."""
    return {"suit": card.suit.value, "value": card.value}


def dict_to_card(data: Dict[str, Any]) -> Card:
    """Convert a dict back into a Card. Raises ValueError on malformed input."""
    try:
        suit = Suit(str(data["suit"]).upper())
        raw_value = data["value"]
        value = int(raw_value)
    except (KeyError, TypeError, OverflowError) as exc:
        raise ValueError(f"Malformed card: {data!r}") from exc
    if isinstance(raw_value, bool) or (not isinstance(raw_value, str) and value != raw_value):
        raise ValueError(f"Card value must be a whole number: {raw_value!r}")
    return Card(suit=suit, value=value)


def card_sort_key(card: Card) -> Tuple[int, int]:
    """Sort by suit (cycle order) then value, for stable display and tie-breaks."""
    return (SUIT_ORDER.index(card.suit), card.value)


def create_deck() -> List[Card]:
    """All 52 cards, suits in cycle order then values ascending."""
    return [Card(suit, value) for suit in Suit for value in range(MIN_VALUE, MAX_VALUE + 1)]


def trick_rank(card: Card, trump_suit: Suit, lead_suit: Optional[Suit]) -> Tuple[int, int]:
    """
    Ranking key used to decide a trick.

    Trump outranks the lead suit, which outranks everything else. Cards of
    neither suit can never win, so their value is ignored.
    """
    if card.suit == trump_suit:
        return (2, card.value)
    if lead_suit is not None and card.suit == lead_suit:
        return (1, card.value)
    return (0, 0)


def compare_for_trick(
    a: Card,
    b: Card,
    trump_suit: Suit,
    lead_suit: Optional[Suit],
) -> int:
    """Negative if a loses to b, positive if a beats b, 0 if neither can be told apart."""
    ka = trick_rank(a, trump_suit, lead_suit)
    kb = trick_rank(b, trump_suit, lead_suit)
    return (ka > kb) - (ka < kb)


class Deck:
    """A standard 52-card deck, rebuilt and reshuffled every round."""

    def __init__(self) -> None:
        self.cards: List[Card] = create_deck()

        if len(self.cards) != 52:
            raise RuntimeError("Deck must contain exactly 52 cards")

    def shuffle(self, rng: Optional[random.Random] = None) -> None:
        """Shuffle the deck in place. Uses provided RNG if given."""
        if rng is None:
            random.shuffle(self.cards)
        else:
            rng.shuffle(self.cards)

    def deal(
        self,
        num_players: int,
        cards_per_player: int,
    ) -> Tuple[List[List[Card]], List[Card]]:
        """
        Deal cards to players, one at a time round the table.

        Returns (hands, remaining_cards), where:
        - hands: list of length num_players, each a list[Card] of length cards_per_player
        - remaining_cards: the undealt cards
        """
        if num_players < 1 or cards_per_player < 0:
            raise ValueError("Need at least one player and a non-negative hand size")
        total_needed = num_players * cards_per_player
        if total_needed > len(self.cards):
            raise ValueError(
                f"Not enough cards in deck to deal {cards_per_player} to {num_players} players"
            )

        hands: List[List[Card]] = [[] for _ in range(num_players)]
        idx = 0
        for _ in range(cards_per_player):
            for p in range(num_players):
                hands[p].append(self.cards[idx])
                idx += 1

        remaining = self.cards[idx:]
        return hands, remaining
