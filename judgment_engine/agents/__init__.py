from .base import JudgmentAgent
from .heuristic_agent import HeuristicAgent, choose_bid, choose_card

__all__ = [
    "JudgmentAgent",
    "HeuristicAgent",
    "choose_bid",
    "choose_card",
]
