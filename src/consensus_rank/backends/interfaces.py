"""Core abstraction for interchangeable compute backends.

A backend implements every numeric operation of the engine. The native
backend vectorizes with numpy and scikit-learn; the fallback backend is
plain Python. Both must return the same numbers (within 1e-9 relative)
and the same cluster labels for the same input.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..config import EngineConfig
from ..models import ScorableItem, StatementResult
from ..votes import VoteMatrix

# Squared distances closer than this count as ties (lowest index wins)
TIE_TOLERANCE = 1e-9


@runtime_checkable
class ComputeBackend(Protocol):
    """Protocol for scoring and consensus backends."""

    name: str

    def probe(self) -> None:
        """Run a tiny computation; raise if the backend cannot run here."""
        ...

    def score(
        self,
        items: list[ScorableItem],
        strategy: str,
        config: EngineConfig,
        now: float,
    ) -> list[float]:
        """Score items with a validated strategy name.

        Args:
            items: Items to score
            strategy: One of the registered strategy names
            config: Weights, gravity and Wilson confidence
            now: Reference instant in epoch seconds (trending only)

        Returns:
            One score per item, in input order.
        """
        ...

    def statement_stats(self, matrix: VoteMatrix) -> list[StatementResult]:
        """Counts, agreement ratio and divisiveness per statement, in matrix order."""
        ...

    def agreement_rates(self, matrix: VoteMatrix) -> list[float]:
        """Per participant: agree votes / votes cast, in matrix order."""
        ...

    def cluster(self, matrix: VoteMatrix, k: int, max_iterations: int) -> list[int]:
        """Assign each participant a raw cluster label in [0, k).

        Uses farthest-first seeding and Lloyd iterations over the dense
        vote vectors (missing = 0). Callers guarantee k <= number of
        distinct vote vectors.
        """
        ...

    def group_consensus(
        self, matrix: VoteMatrix, labels: list[int], k: int
    ) -> list[float]:
        """Mean over clusters of the smoothed agree probability, per statement."""
        ...
