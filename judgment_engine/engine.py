# judgment_engine/engine.py
from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional

from .agents.base import JudgmentAgent
from .agents.heuristic_agent import HeuristicAgent
from .cards import Card, Deck, card_sort_key
from .errors import (
    IllegalCardReferenceError,
    InvalidActionError,
    JudgmentError,
    PlayerNotFoundError,
    ResolutionPendingError,
)
from .events import GameEvent, GameFinished, RoundCompleted, TrickResolved
from .rules import (
    CARD_NOT_IN_HAND,
    MAX_PLAYERS,
    MIN_PLAYERS,
    bid_rejection_reason,
    card_rejection_reason,
    cards_for_round,
    clamp_total_rounds,
    determine_winners,
    score_round,
    trump_for_round,
    winner_of_trick,
)
from .snapshot import GameSnapshot, snapshot_game
from .state import GameState, GameStatus, PlayerState, RoundResult, Trick

logger = logging.getLogger(__name__)

HUMAN_PLAYER_ID = "player-1"


class GameEngine:
    """
    State machine for a single Judgment game.

    The engine is synchronous and knows nothing about timers or sockets.
    A decided trick stays on the table until `complete_trick_resolution()`
    is called; until then every action raises ResolutionPendingError.
    Derived events accumulate until `pop_events()` collects them.
    """

    def __init__(
        self,
        game_state: GameState,
        agents: Optional[Dict[str, JudgmentAgent]] = None,
        rng_seed: Optional[int] = None,
    ) -> None:
        self.state = game_state
        self.rng = random.Random(rng_seed)
        if agents is None:
            agents = {p.id: HeuristicAgent() for p in game_state.players if p.is_ai}
        self.agents: Dict[str, JudgmentAgent] = agents
        self._events: List[GameEvent] = []

    @classmethod
    def with_ai(
        cls,
        game_id: str,
        participant_count: int,
        human_name: str,
        total_rounds: int,
        *,
        rng_seed: Optional[int] = None,
        human_id: str = HUMAN_PLAYER_ID,
    ) -> "GameEngine":
        """Seat one human (the host) and participant_count - 1 AIs, then deal round 1."""
        if not MIN_PLAYERS <= participant_count <= MAX_PLAYERS:
            raise InvalidActionError(
                f"Judgment supports {MIN_PLAYERS} to {MAX_PLAYERS} players"
            )
        human_name = (human_name or "").strip()
        if not human_name:
            raise InvalidActionError("Player name is required")

        rounds = clamp_total_rounds(total_rounds, participant_count)
        if rounds != total_rounds:
            logger.info(
                "Clamped total rounds from %d to %d for %d players",
                total_rounds,
                rounds,
                participant_count,
            )

        rng = random.Random(rng_seed)
        players = [PlayerState(id=human_id, name=human_name, is_host=True)]
        taken_names = {human_name}
        taken_ids = {human_id}
        label = 1
        while len(players) < participant_count:
            name = f"AI Player {label}"
            label += 1
            if name in taken_names:
                continue
            ai_id = f"ai-{rng.getrandbits(36):09x}"
            if ai_id in taken_ids:
                continue
            players.append(PlayerState(id=ai_id, name=name, is_ai=True))
            taken_names.add(name)
            taken_ids.add(ai_id)

        engine = cls(
            GameState(id=game_id, players=players, total_rounds=rounds),
            rng_seed=rng.getrandbits(64),
        )
        logger.info(
            "Created game %s: %d players, %d rounds",
            game_id,
            participant_count,
            rounds,
        )
        engine.start_round()
        return engine

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def snapshot(self) -> GameSnapshot:
        return snapshot_game(self.state)

    def pop_events(self) -> List[GameEvent]:
        events, self._events = self._events, []
        return events

    def is_ai_turn(self) -> bool:
        """True when an AI may act right now (no trick waiting to be cleared)."""
        s = self.state
        if s.status not in (GameStatus.BIDDING, GameStatus.PLAYING):
            return False
        if s.resolution_in_progress:
            return False
        player = s.current_player
        return player is not None and player.is_ai

    def start_round(self) -> None:
        """Reset per-round state, reshuffle, deal and open bidding."""
        s = self.state
        s.current_trick = Trick()
        s.completed_tricks = []
        s.turn_count = 0
        s.trick_winner = None
        s.resolution_in_progress = False

        for p in s.players:
            p.tricks_won_this_round = 0
            p.current_bid = None

        s.trump_suit = trump_for_round(s.current_round)
        s.cards_per_player = cards_for_round(
            s.current_round, s.total_rounds, s.num_players
        )

        deck = Deck()
        deck.shuffle(self.rng)
        hands, _ = deck.deal(s.num_players, s.cards_per_player)
        for player, hand in zip(s.players, hands):
            player.hand = sorted(hand, key=card_sort_key)

        opener = (s.current_round - 1) % s.num_players
        s.current_turn = s.players[opener].id
        s.status = GameStatus.BIDDING

        logger.info(
            "Game %s round %d/%d: dealing %d cards per player, trump %s",
            s.id,
            s.current_round,
            s.total_rounds,
            s.cards_per_player,
            s.trump_suit.name,
        )

    def place_bid(self, player_id: str, bid: int) -> None:
        s = self.state
        player = self._require_player(player_id)
        self._ensure_not_resolving()

        reason = bid_rejection_reason(s, player, bid)
        if reason is not None:
            raise InvalidActionError(reason)

        s.round_finished = False
        player.current_bid = bid
        s.turn_count += 1
        logger.debug("Game %s: %s bids %d", s.id, player.name, bid)

        if s.turn_count == s.num_players:
            s.status = GameStatus.PLAYING
            s.turn_count = 0
            logger.info(
                "Game %s: bidding complete (%s), playing round %d",
                s.id,
                ", ".join(f"{p.name}={p.current_bid}" for p in s.players),
                s.current_round,
            )

        self._advance_turn()

    def play_card(self, player_id: str, card: Card) -> None:
        s = self.state
        player = self._require_player(player_id)
        self._ensure_not_resolving()

        reason = card_rejection_reason(s, player, card)
        if reason == CARD_NOT_IN_HAND:
            raise IllegalCardReferenceError(f"{card} is not in {player.name}'s hand")
        if reason is not None:
            raise InvalidActionError(reason)

        player.hand.remove(card)
        trick = s.current_trick
        if not trick.plays:
            trick.lead_suit = card.suit
            s.trick_winner = None
            s.round_finished = False
        trick.plays.append((player.id, card))
        s.turn_count += 1
        logger.debug("Game %s: %s plays %s", s.id, player.name, card)

        if s.turn_count == s.num_players:
            self._decide_trick()
            s.turn_count = 0
        else:
            self._advance_turn()

    def complete_trick_resolution(self) -> None:
        """Clear the decided trick, hand the lead to its winner and maybe end the round."""
        s = self.state
        if not s.resolution_in_progress:
            raise InvalidActionError("No trick is waiting to be cleared")

        trick = s.current_trick
        s.completed_tricks.append(trick)
        s.current_trick = Trick()
        s.current_turn = trick.winner_id
        s.resolution_in_progress = False

        if all(not p.hand for p in s.players):
            self._complete_round()

    def take_ai_turn(self) -> bool:
        """
        Apply one bid or card for the AI whose turn it is.

        Returns False without touching state when no AI may act, or when
        the agent fails or its choice is rejected (logged).
        """
        if not self.is_ai_turn():
            return False

        s = self.state
        player = s.current_player
        agent = self.agents.get(player.id)
        if agent is None:
            logger.warning("Game %s: no agent for AI %s", s.id, player.name)
            return False

        try:
            if s.status == GameStatus.BIDDING:
                bid = agent.choose_bid(self._build_bid_observation(player))
                self.place_bid(player.id, bid)
            else:
                card = agent.choose_card(self._build_play_observation(player))
                self.play_card(player.id, card)
        except JudgmentError as exc:
            logger.warning(
                "Game %s: AI %s action rejected, stopping AI turns: %s",
                s.id,
                player.name,
                exc,
            )
            return False
        except Exception:
            logger.exception(
                "Game %s: AI %s failed to choose an action, stopping AI turns",
                s.id,
                player.name,
            )
            return False
        return True

    def drive_ai_turns(self) -> int:
        """
        Let AI participants act until a human is due, a trick needs
        clearing or the game ends. Returns the number of actions applied.
        """
        actions = 0
        # Every applied action consumes a bid slot or a card, so this ends.
        while self.take_ai_turn():
            actions += 1
        return actions

    # -------------------------------------------------------------------------
    # Turn and trick lifecycle
    # -------------------------------------------------------------------------

    def _require_player(self, player_id: str) -> PlayerState:
        player = self.state.find_player(player_id)
        if player is None:
            raise PlayerNotFoundError(player_id)
        return player

    def _ensure_not_resolving(self) -> None:
        if self.state.resolution_in_progress:
            raise ResolutionPendingError(
                f"Game {self.state.id}: trick resolution in progress"
            )

    def _advance_turn(self) -> None:
        s = self.state
        current = s.seat_of(s.current_turn)
        if current == -1:
            s.current_turn = s.players[0].id
            return

        for offset in range(1, s.num_players + 1):
            candidate = s.players[(current + offset) % s.num_players]
            # Empty-handed seats sit out card play.
            if s.status != GameStatus.PLAYING or candidate.hand:
                s.current_turn = candidate.id
                return

    def _decide_trick(self) -> None:
        s = self.state
        trick = s.current_trick
        winner_id = winner_of_trick(trick, s.trump_suit)
        winner = s.find_player(winner_id)

        trick.winner_id = winner_id
        winner.tricks_won_this_round += 1
        s.trick_winner = winner_id
        s.resolution_in_progress = True

        logger.info(
            "Game %s: %s wins the trick with %s",
            s.id,
            winner.name,
            next(card for pid, card in trick.plays if pid == winner_id),
        )
        self._events.append(
            TrickResolved(
                game_id=s.id,
                winner_id=winner_id,
                winner_name=winner.name,
                cards=tuple(trick.plays),
            )
        )

    def _complete_round(self) -> None:
        s = self.state
        deltas = score_round(s.players)
        bids = {p.id: p.current_bid for p in s.players}
        tricks_won = {p.id: p.tricks_won_this_round for p in s.players}

        for p in s.players:
            p.previous_score = p.score
            p.score += deltas[p.id]
            p.current_bid = None
            p.tricks_won_this_round = 0

        scores = {p.id: p.score for p in s.players}
        s.round_history.append(
            RoundResult(
                round_number=s.current_round,
                cards_per_player=s.cards_per_player,
                trump_suit=s.trump_suit,
                bids=bids,
                tricks_won=tricks_won,
                deltas=deltas,
                scores=scores,
            )
        )
        s.round_finished = True

        finished = s.current_round >= s.total_rounds
        logger.info(
            "Game %s: round %d/%d scored %s",
            s.id,
            s.current_round,
            s.total_rounds,
            deltas,
        )
        self._events.append(
            RoundCompleted(
                game_id=s.id,
                round_number=s.current_round,
                next_round=None if finished else s.current_round + 1,
                scores=dict(scores),
            )
        )

        if finished:
            self._finish_game()
        else:
            s.current_round += 1
            self.start_round()

    def _finish_game(self) -> None:
        s = self.state
        s.status = GameStatus.FINISHED
        s.current_turn = None
        s.current_trick = Trick()
        s.completed_tricks = []
        s.turn_count = 0
        s.winner_ids = determine_winners(s.players)

        winner = s.winner
        if len(s.winner_ids) > 1:
            logger.info(
                "Game %s: tie for first between %s",
                s.id,
                ", ".join(s.find_player(pid).name for pid in s.winner_ids),
            )
        logger.info("Game %s finished; winner %s (%d)", s.id, winner.name, winner.score)
        self._events.append(
            GameFinished(
                game_id=s.id,
                winner_id=winner.id,
                winner_name=winner.name,
                final_scores={p.id: p.score for p in s.players},
                winner_ids=tuple(s.winner_ids),
            )
        )

    # -------------------------------------------------------------------------
    # Observation builders
    # -------------------------------------------------------------------------

    def _bidding_order(self) -> List[PlayerState]:
        s = self.state
        opener = (s.current_round - 1) % s.num_players
        return [s.players[(opener + i) % s.num_players] for i in range(s.num_players)]

    def _build_common_observation_base(self, player: PlayerState) -> Dict[str, Any]:
        s = self.state
        return {
            "game_id": s.id,
            "round": s.current_round,
            "total_rounds": s.total_rounds,
            "cards_per_player": s.cards_per_player,
            "num_players": s.num_players,
            "trump_suit": s.trump_suit,
            "player_id": player.id,
            "hand": list(player.hand),
            "scores": {p.id: p.score for p in s.players},
        }

    def _build_bid_observation(self, player: PlayerState) -> Dict[str, Any]:
        s = self.state
        obs = self._build_common_observation_base(player)
        obs.update(
            {
                "phase": "bidding",
                "prior_bids": [
                    p.current_bid for p in self._bidding_order() if p.has_bid
                ],
                "is_last_bidder": s.bids_placed == s.num_players - 1,
            }
        )
        return obs

    def _build_play_observation(self, player: PlayerState) -> Dict[str, Any]:
        s = self.state
        obs = self._build_common_observation_base(player)
        obs.update(
            {
                "phase": "play",
                "current_trick": s.current_trick.cards,
                "lead_suit": s.current_lead_suit,
                "bid": player.current_bid,
                "tricks_won": player.tricks_won_this_round,
                "bids": {p.id: p.current_bid for p in s.players},
                "tricks_taken_so_far": {
                    p.id: p.tricks_won_this_round for p in s.players
                },
            }
        )
        return obs
