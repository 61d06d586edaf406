# judgment_engine/scoreboard.py
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List

if TYPE_CHECKING:
    from .snapshot import GameSnapshot

FIELDNAMES = [
    "round_number",
    "cards_per_player",
    "trump_suit",
    "player_id",
    "player_name",
    "bid",
    "tricks_won",
    "round_delta",
    "total_score",
]


def build_round_score_rows(snapshot: "GameSnapshot") -> List[Dict[str, Any]]:
    """
    Build one row per (completed round, player), keyed by FIELDNAMES.

    Rows come out in round order and seating order, so a leaderboard can
    replay how the totals were reached.
    """
    rows: List[Dict[str, Any]] = []
    for summary in snapshot.round_history:
        for p in snapshot.players:
            rows.append(
                {
                    "round_number": summary.round_number,
                    "cards_per_player": summary.cards_per_player,
                    "trump_suit": summary.trump_suit.value,
                    "player_id": p.id,
                    "player_name": p.name,
                    "bid": summary.bids.get(p.id),
                    "tricks_won": summary.tricks_won.get(p.id, 0),
                    "round_delta": summary.deltas.get(p.id, 0),
                    "total_score": summary.scores.get(p.id, 0),
                }
            )
    return rows


def standings(snapshot: "GameSnapshot") -> List[Dict[str, Any]]:
    """
    Players ordered by score, highest first.

    Equal scores share a rank and keep seating order.
    """
    ordered = sorted(
        enumerate(snapshot.players),
        key=lambda item: (-item[1].score, item[0]),
    )
    result: List[Dict[str, Any]] = []
    rank = 0
    last_score = None
    for position, (_, p) in enumerate(ordered, start=1):
        if p.score != last_score:
            rank = position
            last_score = p.score
        result.append(
            {
                "rank": rank,
                "player_id": p.id,
                "player_name": p.name,
                "score": p.score,
                "last_delta": p.score - p.previous_score,
            }
        )
    return result
