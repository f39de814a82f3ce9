"""Pure-Python backend.

Always available. Calls the scalar reference formulas in
``consensus_rank.scoring`` and runs k-means with plain lists.
"""

from __future__ import annotations

from ..config import EngineConfig
from ..models import ScorableItem, StatementResult
from ..scoring import (
    agreement_ratio,
    controversial_score,
    divisiveness,
    newest_score,
    smoothed_agree_probability,
    trending_score,
    wilson_score,
    z_for_confidence,
)
from ..votes import VoteMatrix
from .interfaces import TIE_TOLERANCE


def _squared_distance(a: list[float], b: list[float]) -> float:
    return sum((x - y) ** 2 for x, y in zip(a, b))


def _first_at_least(values: list[float], target: float) -> int:
    """Index of the first value within tolerance of ``target`` from above."""
    return next(i for i, v in enumerate(values) if v >= target - TIE_TOLERANCE)


def _first_at_most(values: list[float], target: float) -> int:
    return next(i for i, v in enumerate(values) if v <= target + TIE_TOLERANCE)


class FallbackBackend:
    """Plain-Python implementation of every engine operation."""

    name = "fallback"

    def probe(self) -> None:
        return None

    def score(
        self,
        items: list[ScorableItem],
        strategy: str,
        config: EngineConfig,
        now: float,
    ) -> list[float]:
        if strategy == "newest":
            return [newest_score(item) for item in items]
        if strategy == "trending":
            return [
                trending_score(
                    item,
                    now,
                    w_reply=config.w_reply,
                    w_repost=config.w_repost,
                    gravity=config.gravity,
                )
                for item in items
            ]
        if strategy == "wilson":
            z = z_for_confidence(config.wilson_confidence)
            return [
                wilson_score(item.like_count, item.downvote_count, z)
                for item in items
            ]
        if strategy == "controversial":
            return [
                controversial_score(item.like_count, item.downvote_count)
                for item in items
            ]
        raise ValueError(f"Unsupported strategy '{strategy}'")

    def statement_stats(self, matrix: VoteMatrix) -> list[StatementResult]:
        results = []
        for sid in matrix.statements:
            values = list(matrix.statement_votes(sid).values())
            agrees = values.count(1)
            disagrees = values.count(-1)
            passes = values.count(0)
            results.append(
                StatementResult(
                    statement_id=sid,
                    agreement_ratio=agreement_ratio(agrees, disagrees),
                    divisiveness=divisiveness(agrees, disagrees),
                    total_votes=len(values),
                    agree_count=agrees,
                    disagree_count=disagrees,
                    pass_count=passes,
                )
            )
        return results

    def agreement_rates(self, matrix: VoteMatrix) -> list[float]:
        rates = []
        for pid in matrix.participants:
            values = list(matrix.participant_votes(pid).values())
            rates.append(values.count(1) / len(values) if values else 0.0)
        return rates

    def cluster(self, matrix: VoteMatrix, k: int, max_iterations: int) -> list[int]:
        rows = matrix.dense()
        if not rows or k < 1:
            return []

        centers = [list(rows[i]) for i in self._seed(rows, k)]
        labels: list[int] = []

        for _ in range(max(1, max_iterations)):
            new_labels = [
                _first_at_most(dists, min(dists))
                for dists in (
                    [_squared_distance(row, center) for center in centers]
                    for row in rows
                )
            ]
            if new_labels == labels:
                break
            labels = new_labels

            for c in range(k):
                members = [rows[i] for i, label in enumerate(labels) if label == c]
                if members:
                    centers[c] = [sum(col) / len(members) for col in zip(*members)]

        return labels

    def _seed(self, rows: list[list[float]], k: int) -> list[int]:
        """Farthest-first seeding starting from the largest vote vector."""
        norms = [sum(x * x for x in row) for row in rows]
        seeds = [_first_at_least(norms, max(norms))]
        nearest = [_squared_distance(row, rows[seeds[0]]) for row in rows]

        while len(seeds) < k:
            nxt = _first_at_least(nearest, max(nearest))
            seeds.append(nxt)
            nearest = [
                min(d, _squared_distance(row, rows[nxt]))
                for d, row in zip(nearest, rows)
            ]
        return seeds

    def group_consensus(
        self, matrix: VoteMatrix, labels: list[int], k: int
    ) -> list[float]:
        if k < 1:
            return [0.5 for _ in matrix.statements]

        participants = matrix.participants
        scores = []
        for sid in matrix.statements:
            votes = matrix.statement_votes(sid)
            probs = []
            for c in range(k):
                seen = agrees = 0
                for pid, label in zip(participants, labels):
                    if label != c or pid not in votes:
                        continue
                    seen += 1
                    if votes[pid] == 1:
                        agrees += 1
                probs.append(smoothed_agree_probability(agrees, seen))
            scores.append(sum(probs) / len(probs))
        return scores
