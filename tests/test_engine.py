import logging

import pytest

from judgment_engine.cards import Card, Suit
from judgment_engine.engine import HUMAN_PLAYER_ID, GameEngine
from judgment_engine.errors import (
    IllegalCardReferenceError,
    InvalidActionError,
    PlayerNotFoundError,
    ResolutionPendingError,
)
from judgment_engine.events import GameFinished, RoundCompleted, TrickResolved
from judgment_engine.rules import can_play_card, is_valid_bid
from judgment_engine.state import GameState, GameStatus


def _make_engine(num_players: int = 3, total_rounds: int = 6, seed: int = 999) -> GameEngine:
    return GameEngine.with_ai(
        "g-test",
        num_players,
        "Human",
        total_rounds,
        rng_seed=seed,
    )


def _human_step(engine: GameEngine) -> None:
    s = engine.state
    human = s.find_player(HUMAN_PLAYER_ID)
    if s.status == GameStatus.BIDDING:
        bid = next(b for b in range(s.cards_per_player + 1) if is_valid_bid(s, human, b))
        engine.place_bid(human.id, bid)
    else:
        card = next(c for c in human.hand if can_play_card(s, human, c))
        engine.play_card(human.id, card)


def _assert_cards_conserved(s: GameState) -> None:
    cards = [c for p in s.players for c in p.hand]
    cards += s.current_trick.cards
    cards += [c for t in s.completed_tricks for c in t.cards]
    assert len(cards) == s.num_players * s.cards_per_player
    assert len(set(cards)) == len(cards)


def _run_game(engine: GameEngine) -> None:
    steps = 0
    while engine.state.status != GameStatus.FINISHED:
        s = engine.state
        _assert_cards_conserved(s)
        if s.resolution_in_progress:
            engine.complete_trick_resolution()
        elif s.current_player.is_ai:
            assert engine.drive_ai_turns() > 0
        else:
            _human_step(engine)
        steps += 1
        assert steps < 10_000


def test_create_game_with_ai_seats_players():
    engine = _make_engine(5)
    s = engine.state

    assert s.num_players == 5
    human = s.players[0]
    assert human.id == HUMAN_PLAYER_ID
    assert human.is_host and not human.is_ai
    assert all(p.is_ai and not p.is_host for p in s.players[1:])
    assert len({p.id for p in s.players}) == 5
    assert len({p.name for p in s.players}) == 5
    assert set(engine.agents) == {p.id for p in s.players[1:]}

    assert s.status == GameStatus.BIDDING
    assert s.current_round == 1
    assert s.trump_suit == Suit.SPADES
    assert s.current_turn == HUMAN_PLAYER_ID
    assert all(len(p.hand) == 1 for p in s.players)


def test_create_game_validation_and_clamping():
    with pytest.raises(InvalidActionError):
        _make_engine(2)
    with pytest.raises(InvalidActionError):
        _make_engine(9)
    with pytest.raises(InvalidActionError):
        GameEngine.with_ai("g", 3, "   ", 6)

    assert _make_engine(3, total_rounds=1).state.total_rounds == 6
    assert _make_engine(3, total_rounds=100).state.total_rounds == 33
    assert _make_engine(8, total_rounds=100).state.total_rounds == 12


def test_ai_names_skip_the_human_name():
    engine = GameEngine.with_ai("g", 3, "AI Player 1", 6, rng_seed=1)
    names = [p.name for p in engine.state.players]
    assert names == ["AI Player 1", "AI Player 2", "AI Player 3"]


def test_first_round_end_to_end():
    engine = _make_engine(3, total_rounds=6)
    s = engine.state
    human = s.find_player(HUMAN_PLAYER_ID)

    _human_step(engine)
    assert s.status == GameStatus.BIDDING
    assert engine.drive_ai_turns() == 2
    assert s.status == GameStatus.PLAYING
    assert all(p.has_bid for p in s.players)
    assert s.current_turn == HUMAN_PLAYER_ID

    _human_step(engine)
    assert s.current_lead_suit is not None
    assert engine.drive_ai_turns() == 2

    # Trick decided but still on the table.
    assert s.resolution_in_progress
    assert len(s.current_trick.plays) == 3
    assert s.trick_winner is not None
    assert engine.drive_ai_turns() == 0
    events = engine.pop_events()
    assert [type(e) for e in events] == [TrickResolved]
    assert events[0].winner_id == s.trick_winner

    engine.complete_trick_resolution()
    assert not s.resolution_in_progress
    assert s.round_finished
    assert s.current_round == 2
    assert s.trump_suit == Suit.DIAMONDS
    assert s.status == GameStatus.BIDDING
    assert s.cards_per_player == 2
    # Opening seat rotates.
    assert s.current_turn == s.players[1].id

    result = s.round_history[0]
    for p in s.players:
        won = result.tricks_won[p.id]
        expected = 10 + won if won == result.bids[p.id] else 0
        assert result.deltas[p.id] == expected
        assert p.score == expected
        assert p.previous_score == 0
        assert p.current_bid is None
        assert p.tricks_won_this_round == 0
    assert sum(result.tricks_won.values()) == 1
    assert human.hand and len(human.hand) == 2

    events = engine.pop_events()
    assert [type(e) for e in events] == [RoundCompleted]
    assert events[0].round_number == 1
    assert events[0].next_round == 2


def test_full_game_basic_invariants():
    engine = _make_engine(4, total_rounds=7)
    _run_game(engine)
    s = engine.state

    assert s.status == GameStatus.FINISHED
    assert s.current_round == s.total_rounds
    assert s.current_turn is None
    assert len(s.round_history) == 7
    assert [r.cards_per_player for r in s.round_history] == [1, 2, 3, 4, 3, 2, 1]

    totals = {p.id: 0 for p in s.players}
    for r in s.round_history:
        assert sum(r.tricks_won.values()) == r.cards_per_player
        # Hook rule held every round.
        assert sum(r.bids.values()) != r.cards_per_player
        for pid in totals:
            totals[pid] += r.deltas[pid]
    for p in s.players:
        assert p.score == totals[p.id]

    top = max(p.score for p in s.players)
    assert s.winner_ids == [p.id for p in s.players if p.score == top]
    assert s.winner.score == top

    events = engine.pop_events()
    finished = [e for e in events if isinstance(e, GameFinished)]
    assert len(finished) == 1
    assert finished[0].winner_id == s.winner_ids[0]
    assert finished[0].final_scores == {p.id: p.score for p in s.players}
    assert sum(isinstance(e, TrickResolved) for e in events) == 16
    assert sum(isinstance(e, RoundCompleted) for e in events) == 7


def test_finished_game_rejects_actions():
    engine = _make_engine(3, total_rounds=6)
    _run_game(engine)
    s = engine.state
    human = s.find_player(HUMAN_PLAYER_ID)

    assert not is_valid_bid(s, human, 0)
    assert not can_play_card(s, human, Card(Suit.SPADES, 2))
    with pytest.raises(InvalidActionError):
        engine.place_bid(HUMAN_PLAYER_ID, 0)
    # Phase is checked before hand ownership.
    with pytest.raises(InvalidActionError):
        engine.play_card(HUMAN_PLAYER_ID, Card(Suit.SPADES, 2))
    assert engine.drive_ai_turns() == 0


def test_unknown_player_and_wrong_turn():
    engine = _make_engine(3)
    before = engine.snapshot()
    ai = engine.state.players[1]

    with pytest.raises(PlayerNotFoundError):
        engine.place_bid("nobody", 0)
    with pytest.raises(InvalidActionError):
        engine.place_bid(ai.id, 0)
    with pytest.raises(InvalidActionError):
        engine.place_bid(HUMAN_PLAYER_ID, 5)

    assert engine.snapshot() == before


def test_card_not_in_hand_is_an_illegal_reference():
    engine = _make_engine(3)
    _human_step(engine)
    engine.drive_ai_turns()

    human = engine.state.find_player(HUMAN_PLAYER_ID)
    held = human.hand[0]
    foreign = next(c for c in engine.state.players[1].hand)
    assert foreign != held

    before = engine.snapshot()
    with pytest.raises(IllegalCardReferenceError):
        engine.play_card(HUMAN_PLAYER_ID, foreign)
    assert engine.snapshot() == before


def test_actions_wait_for_trick_resolution():
    engine = _make_engine(3)
    _human_step(engine)
    engine.drive_ai_turns()
    _human_step(engine)
    engine.drive_ai_turns()
    assert engine.state.resolution_in_progress

    with pytest.raises(ResolutionPendingError):
        engine.place_bid(HUMAN_PLAYER_ID, 0)
    with pytest.raises(ResolutionPendingError):
        engine.play_card(HUMAN_PLAYER_ID, Card(Suit.SPADES, 2))

    engine.complete_trick_resolution()
    with pytest.raises(InvalidActionError):
        engine.complete_trick_resolution()


def test_snapshot_is_detached_and_stable():
    engine = _make_engine(3)
    first = engine.snapshot()
    assert engine.snapshot() == first

    _human_step(engine)
    assert first.player(HUMAN_PLAYER_ID).current_bid is None
    assert engine.snapshot() != first
    assert isinstance(first.player(HUMAN_PLAYER_ID).hand, tuple)


class _StubbornAgent:
    def choose_bid(self, observation):
        return observation["cards_per_player"] + 5

    def choose_card(self, observation):
        raise AssertionError("not reached")


def test_rejected_ai_action_stops_the_loop(caplog):
    engine = _make_engine(3)
    _human_step(engine)
    ai = engine.state.players[1]
    engine.agents[ai.id] = _StubbornAgent()

    before = engine.snapshot()
    with caplog.at_level(logging.WARNING, logger="judgment_engine.engine"):
        assert engine.drive_ai_turns() == 0
    assert engine.snapshot() == before
    assert engine.state.current_turn == ai.id
    assert "rejected" in caplog.text


class _BrokenAgent:
    def choose_bid(self, observation):
        raise KeyError("hand")

    def choose_card(self, observation):
        raise KeyError("hand")


def test_crashing_ai_agent_stops_the_loop(caplog):
    engine = _make_engine(3)
    _human_step(engine)
    ai = engine.state.players[1]
    engine.agents[ai.id] = _BrokenAgent()

    before = engine.snapshot()
    with caplog.at_level(logging.ERROR, logger="judgment_engine.engine"):
        assert engine.drive_ai_turns() == 0
    assert engine.snapshot() == before
    assert engine.state.current_turn == ai.id
    assert "failed to choose an action" in caplog.text
