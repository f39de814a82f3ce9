"""Consensus analysis over agree / disagree / pass votes.

Clusters participants by their voting patterns on statements and
summarizes each statement.

Algorithm:
1. Build the vote matrix (participants x statements), last write wins
2. Count agree / disagree / pass per statement
3. Pick K: min(max_clusters, ceil(sqrt(n / 2))), at least 1
4. K-means over vote vectors (missing vote = 0), farthest-first seeding
5. Relabel clusters in order of their first member
6. Group consensus per statement across clusters
"""

from __future__ import annotations

import math
from typing import Any, Iterable

from .backends import BackendSelector, get_selector
from .config import EngineConfig
from .log import get_logger
from .models import Cluster, ConsensusResult, VoteEvent
from .votes import VoteMatrix

logger = get_logger(__name__).bind(component="consensus")

# agreement_ratio above these marks a statement as broadly agreed / mixed
AGREE_THRESHOLD = 0.66
MIXED_THRESHOLD = 0.33


def classify_agreement(ratio: float) -> str:
    """Bucket an agreement ratio into agree / mixed / disagree."""
    if ratio > AGREE_THRESHOLD:
        return "agree"
    if ratio > MIXED_THRESHOLD:
        return "mixed"
    return "disagree"


def default_cluster_count(n_participants: int, max_clusters: int = 4) -> int:
    """Determine the number of opinion groups.

    Formula: K = min(max_clusters, ceil(sqrt(n / 2))), at least 1

    Examples:
        - 2 participants -> K = 1
        - 10 participants -> K = 3
        - 32+ participants -> K = 4 (capped)
    """
    if n_participants <= 0:
        return 0
    k = math.ceil(math.sqrt(n_participants / 2))
    return max(1, min(k, max_clusters))


def resolve_cluster_count(matrix: VoteMatrix, config: EngineConfig) -> int:
    """K after applying config and shrinking to what the data can support."""
    n = len(matrix.participants)
    if n == 0:
        return 0
    k = config.cluster_count or default_cluster_count(n, config.max_clusters)
    distinct = len({tuple(row) for row in matrix.dense()})
    return max(1, min(k, n, distinct))


def _canonical_labels(raw_labels: list[int]) -> tuple[list[int], int]:
    """Renumber labels 0..k-1 by first appearance, dropping empty clusters."""
    mapping: dict[int, int] = {}
    for label in raw_labels:
        mapping.setdefault(label, len(mapping))
    return [mapping[label] for label in raw_labels], len(mapping)


def _build_matrix(votes: VoteMatrix | Iterable[VoteEvent | dict[str, Any]]) -> VoteMatrix:
    if isinstance(votes, VoteMatrix):
        return votes
    return VoteMatrix.from_events(votes)


def analyze_consensus(
    votes: VoteMatrix | Iterable[VoteEvent | dict[str, Any]],
    config: EngineConfig | None = None,
    backend: BackendSelector | str | None = None,
) -> ConsensusResult:
    """Compute statement statistics and opinion clusters from votes.

    Args:
        votes: Vote events (or dicts), or an already built VoteMatrix
        config: Cluster count policy; read from environment if omitted
        backend: Selector instance or backend preference name

    Returns:
        ConsensusResult. With no votes: zero participants, no statements,
        no clusters.

    Raises:
        InvalidVoteError: If any vote value is outside {-1, 0, 1}
    """
    config = config or EngineConfig()
    matrix = _build_matrix(votes)

    if matrix.is_empty():
        return ConsensusResult(backend="", duplicate_votes=matrix.duplicates)

    if isinstance(backend, BackendSelector):
        selector = backend
    else:
        selector = get_selector(backend or config.backend)

    statements, stats_backend = selector.run("statement_stats", matrix)
    rates, rates_backend = selector.run("agreement_rates", matrix)

    k = resolve_cluster_count(matrix, config)
    raw_labels, cluster_backend = selector.run(
        "cluster", matrix, k, config.max_iterations
    )
    labels, k = _canonical_labels(raw_labels)

    participants = matrix.participants
    clusters = []
    for cluster_id in range(k):
        members = [i for i, label in enumerate(labels) if label == cluster_id]
        clusters.append(
            Cluster(
                cluster_id=cluster_id,
                member_ids=[participants[i] for i in members],
                avg_agreement=sum(rates[i] for i in members) / len(members),
            )
        )

    consensus, consensus_backend = selector.run("group_consensus", matrix, labels, k)
    for result, score in zip(statements, consensus):
        result.group_consensus = score
        result.band = classify_agreement(result.agreement_ratio)

    # Any stage that degraded makes the whole result a fallback result
    stages = {stats_backend, rates_backend, cluster_backend, consensus_backend}
    used = selector.fallback.name if selector.fallback.name in stages else stats_backend

    logger.info(
        "computed consensus",
        n_participants=len(participants),
        n_statements=len(statements),
        k=k,
        backend=used,
    )

    return ConsensusResult(
        total_participants=len(participants),
        statements=statements,
        clusters=clusters,
        backend=used,
        duplicate_votes=matrix.duplicates,
    )
