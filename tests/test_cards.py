# tests/test_cards.py
import random

import pytest

from judgment_engine.cards import (
    Card,
    Deck,
    Suit,
    card_to_dict,
    compare_for_trick,
    create_deck,
    dict_to_card,
)


def test_deck_composition():
    deck = create_deck()
    assert len(deck) == 52
    assert len(set(deck)) == 52

    for suit in Suit:
        values = sorted(c.value for c in deck if c.suit == suit)
        assert values == list(range(2, 15))

    # Deterministic ordering before the shuffle.
    assert deck[0] == Card(Suit.SPADES, 2)
    assert deck[-1] == Card(Suit.HEARTS, 14)


def test_card_rejects_out_of_range_value():
    with pytest.raises(ValueError):
        Card(Suit.HEARTS, 1)
    with pytest.raises(ValueError):
        Card(Suit.HEARTS, 15)


def test_card_str():
    assert str(Card(Suit.HEARTS, 12)) == "Q of Hearts"
    assert str(Card(Suit.CLUBS, 7)) == "7 of Clubs"


def test_deal_basic():
    deck = Deck()
    deck.shuffle(random.Random(123))
    hands, remaining = deck.deal(4, 5)

    assert len(hands) == 4
    for hand in hands:
        assert len(hand) == 5

    assert len(remaining) == 52 - 4 * 5
    dealt = [c for hand in hands for c in hand]
    assert len(set(dealt + remaining)) == 52


def test_deal_too_many_cards_raises():
    deck = Deck()
    with pytest.raises(ValueError):
        deck.deal(5, 11)


def test_shuffle_determinism_with_seed():
    d1 = Deck()
    d2 = Deck()
    d1.shuffle(random.Random(42))
    d2.shuffle(random.Random(42))

    assert d1.cards == d2.cards
    assert d1.cards != create_deck()


def test_card_dict_codec():
    card = Card(Suit.DIAMONDS, 11)
    assert card_to_dict(card) == {"suit": "DIAMONDS", "value": 11}
    assert dict_to_card({"suit": "diamonds", "value": "11"}) == card

    with pytest.raises(ValueError):
        dict_to_card({"suit": "STARS", "value": 3})
    with pytest.raises(ValueError):
        dict_to_card({"value": 3})


def test_dict_to_card_rejects_fractional_values():
    assert dict_to_card({"suit": "SPADES", "value": 11.0}) == Card(Suit.SPADES, 11)
    for value in (11.9, float("inf"), float("nan"), True, "11.5"):
        with pytest.raises(ValueError):
            dict_to_card({"suit": "SPADES", "value": value})


def test_compare_for_trick_trump_beats_everything():
    low_trump = Card(Suit.SPADES, 2)
    lead_ace = Card(Suit.HEARTS, 14)
    assert compare_for_trick(low_trump, lead_ace, Suit.SPADES, Suit.HEARTS) > 0
    assert compare_for_trick(lead_ace, low_trump, Suit.SPADES, Suit.HEARTS) < 0


def test_compare_for_trick_same_suit_higher_wins():
    assert compare_for_trick(
        Card(Suit.HEARTS, 10), Card(Suit.HEARTS, 9), Suit.SPADES, Suit.HEARTS
    ) > 0
    assert compare_for_trick(
        Card(Suit.SPADES, 3), Card(Suit.SPADES, 12), Suit.SPADES, Suit.HEARTS
    ) < 0


def test_compare_for_trick_off_suit_cannot_win():
    lead_two = Card(Suit.HEARTS, 2)
    off_ace = Card(Suit.CLUBS, 14)
    assert compare_for_trick(off_ace, lead_two, Suit.SPADES, Suit.HEARTS) < 0
    # Two discards are indistinguishable.
    assert compare_for_trick(
        Card(Suit.CLUBS, 14), Card(Suit.DIAMONDS, 3), Suit.SPADES, Suit.HEARTS
    ) == 0
