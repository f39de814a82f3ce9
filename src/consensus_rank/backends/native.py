"""Vectorized backend built on numpy and scikit-learn.

Mirrors the fallback backend operation for operation. Vote matrices are
dense arrays with NaN for unvoted cells; clustering treats NaN as 0.

numpy and scikit-learn are imported where they are used, so a missing or
broken install surfaces in ``probe()`` and the selector degrades to the
fallback instead of the package failing to import.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..config import EngineConfig
from ..models import ScorableItem, StatementResult
from ..scoring import SECONDS_PER_HOUR, z_for_confidence
from ..votes import VoteMatrix
from .interfaces import TIE_TOLERANCE

if TYPE_CHECKING:
    import numpy as np


def _first_at_least(values: np.ndarray, target: float) -> int:
    return int((values >= target - TIE_TOLERANCE).argmax())


def _nearest_labels(distances: np.ndarray) -> np.ndarray:
    """Column of the first near-minimal distance in each row."""
    row_min = distances.min(axis=1, keepdims=True)
    return (distances <= row_min + TIE_TOLERANCE).argmax(axis=1)


def _vote_array(matrix: VoteMatrix) -> np.ndarray:
    """Dense (participants x statements) array, NaN where no vote was cast."""
    import numpy as np

    if matrix.is_empty():
        return np.zeros((0, 0))
    return np.array(matrix.dense(fill=np.nan), dtype=float)


class NativeBackend:
    """numpy / scikit-learn implementation of every engine operation."""

    name = "native"

    def probe(self) -> None:
        """Import and exercise the numeric stack once so a broken install fails here."""
        import numpy as np
        from sklearn.metrics.pairwise import euclidean_distances

        vectors = np.array([[1.0, -1.0], [0.0, 1.0]])
        distances = euclidean_distances(vectors, vectors, squared=True)
        if not np.isfinite(distances).all():
            raise RuntimeError("native backend produced non-finite distances")

    def score(
        self,
        items: list[ScorableItem],
        strategy: str,
        config: EngineConfig,
        now: float,
    ) -> list[float]:
        import numpy as np

        if not items:
            return []

        likes = np.array([item.like_count for item in items], dtype=float)
        downs = np.array([item.downvote_count for item in items], dtype=float)

        if strategy == "newest":
            scores = np.array([item.timestamp for item in items], dtype=float)
        elif strategy == "trending":
            timestamps = np.array([item.timestamp for item in items], dtype=float)
            replies = np.array([item.reply_count for item in items], dtype=float)
            reposts = np.array([item.repost_count for item in items], dtype=float)
            age_hours = np.maximum(0.0, now - timestamps) / SECONDS_PER_HOUR
            engagement = (
                likes - downs + config.w_reply * replies + config.w_repost * reposts
            )
            scores = engagement / np.power(age_hours + 2.0, config.gravity)
        elif strategy == "wilson":
            z = z_for_confidence(config.wilson_confidence)
            z2 = z * z
            n = likes + downs
            safe_n = np.where(n > 0, n, 1.0)
            p_hat = likes / safe_n
            centre = p_hat + z2 / (2 * safe_n)
            spread = z * np.sqrt((p_hat * (1 - p_hat) + z2 / (4 * safe_n)) / safe_n)
            lower = (centre - spread) / (1 + z2 / safe_n)
            scores = np.where(likes > 0, np.maximum(0.0, lower), 0.0)
        elif strategy == "controversial":
            total = likes + downs
            ratio = likes / np.where(total > 0, total, 1.0)
            scores = np.where(total > 0, total * (1 - 2 * np.abs(ratio - 0.5)), 0.0)
        else:
            raise ValueError(f"Unsupported strategy '{strategy}'")

        return scores.tolist()

    def statement_stats(self, matrix: VoteMatrix) -> list[StatementResult]:
        import numpy as np

        votes = _vote_array(matrix)
        if votes.size == 0:
            return []

        agrees = np.sum(votes == 1, axis=0)
        disagrees = np.sum(votes == -1, axis=0)
        passes = np.sum(votes == 0, axis=0)
        decided = agrees + disagrees

        ratio = np.divide(
            agrees, decided, out=np.zeros(len(decided), dtype=float), where=decided > 0
        )
        divisive = np.where(decided > 0, 1 - 2 * np.abs(ratio - 0.5), 0.0)

        return [
            StatementResult(
                statement_id=sid,
                agreement_ratio=float(ratio[j]),
                divisiveness=float(divisive[j]),
                total_votes=int(agrees[j] + disagrees[j] + passes[j]),
                agree_count=int(agrees[j]),
                disagree_count=int(disagrees[j]),
                pass_count=int(passes[j]),
            )
            for j, sid in enumerate(matrix.statements)
        ]

    def agreement_rates(self, matrix: VoteMatrix) -> list[float]:
        import numpy as np

        votes = _vote_array(matrix)
        if votes.size == 0:
            return []
        cast = np.sum(~np.isnan(votes), axis=1)
        agrees = np.sum(votes == 1, axis=1)
        rates = np.divide(
            agrees, cast, out=np.zeros(len(cast), dtype=float), where=cast > 0
        )
        return rates.tolist()

    def cluster(self, matrix: VoteMatrix, k: int, max_iterations: int) -> list[int]:
        import numpy as np
        from sklearn.metrics.pairwise import euclidean_distances

        votes = np.nan_to_num(_vote_array(matrix), nan=0.0)
        if votes.size == 0 or k < 1:
            return []

        centers = votes[self._seed(votes, k)].copy()
        labels = None

        # At least one assignment pass, so every participant gets a label
        for _ in range(max(1, max_iterations)):
            distances = euclidean_distances(votes, centers, squared=True)
            new_labels = _nearest_labels(distances)
            if labels is not None and np.array_equal(new_labels, labels):
                break
            labels = new_labels

            for c in range(k):
                mask = labels == c
                if np.any(mask):
                    centers[c] = votes[mask].mean(axis=0)

        return [int(label) for label in labels]

    def _seed(self, votes: np.ndarray, k: int) -> list[int]:
        """Farthest-first seeding starting from the largest vote vector."""
        import numpy as np
        from sklearn.metrics.pairwise import euclidean_distances

        norms = np.einsum("ij,ij->i", votes, votes)
        seeds = [_first_at_least(norms, norms.max())]
        nearest = euclidean_distances(votes, votes[seeds], squared=True)[:, 0]

        while len(seeds) < k:
            nxt = _first_at_least(nearest, nearest.max())
            seeds.append(nxt)
            dist = euclidean_distances(votes, votes[[nxt]], squared=True)[:, 0]
            nearest = np.minimum(nearest, dist)
        return seeds

    def group_consensus(
        self, matrix: VoteMatrix, labels: list[int], k: int
    ) -> list[float]:
        import numpy as np

        votes = _vote_array(matrix)
        if votes.size == 0:
            return []
        if k < 1:
            return [0.5] * votes.shape[1]

        voted = ~np.isnan(votes)
        label_array = np.asarray(labels)
        probs = []
        for c in range(k):
            in_cluster = (label_array == c)[:, None]
            seen = np.sum(voted & in_cluster, axis=0)
            agrees = np.sum((votes == 1) & in_cluster, axis=0)
            probs.append((agrees + 1) / (seen + 2))
        return np.mean(probs, axis=0).tolist()
