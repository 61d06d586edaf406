# judgment_engine/agents/base.py
from __future__ import annotations

from typing import Any, Dict, Protocol, runtime_checkable

from ..cards import Card


@runtime_checkable
class JudgmentAgent(Protocol):
    """
    Interface for computer-controlled participants.

    `observation` is a dict built by the engine containing:
      - "hand": list[Card] the agent holds
      - "trump_suit", "cards_per_player", "round"
      - bidding: "prior_bids" (in bidding order) and "is_last_bidder"
      - playing: "current_trick" (list[Card]), "lead_suit", "bid", "tricks_won"
    """

    def choose_bid(self, observation: Dict[str, Any]) -> int:
        """Return the bid (0..cards_per_player)."""

        raise NotImplementedError

    def choose_card(self, observation: Dict[str, Any]) -> Card:
        """Return one of the cards in observation["hand"]."""

        raise NotImplementedError
