"""Native and fallback backends must agree on every operation."""

from __future__ import annotations

import pytest

from consensus_rank.backends import FallbackBackend, NativeBackend
from consensus_rank.config import EngineConfig
from consensus_rank.consensus import analyze_consensus
from consensus_rank.ranking import rank_ids
from consensus_rank.scoring import STRATEGIES
from consensus_rank.votes import VoteMatrix

REL = 1e-9


def _membership(result) -> set[frozenset[str]]:
    """Cluster membership sets, ignoring labels."""
    return {frozenset(c.member_ids) for c in result.clusters}


@pytest.fixture()
def native() -> NativeBackend:
    return NativeBackend()


@pytest.fixture()
def fallback() -> FallbackBackend:
    return FallbackBackend()


class TestScoringParity:
    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_scores_match(self, parity_items, now, native, fallback, strategy: str) -> None:
        config = EngineConfig()
        a = native.score(parity_items, strategy, config, now.timestamp())
        b = fallback.score(parity_items, strategy, config, now.timestamp())
        assert a == pytest.approx(b, rel=REL, abs=1e-12)

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_rankings_match(self, parity_items, now, strategy: str) -> None:
        assert rank_ids(parity_items, strategy, now=now, backend="native") == rank_ids(
            parity_items, strategy, now=now, backend="fallback"
        )

    def test_custom_config_matches(self, parity_items, now, native, fallback) -> None:
        config = EngineConfig(w_reply=0.5, w_repost=2.0, gravity=1.8, wilson_confidence=0.99)
        for strategy in ("trending", "wilson"):
            a = native.score(parity_items, strategy, config, now.timestamp())
            b = fallback.score(parity_items, strategy, config, now.timestamp())
            assert a == pytest.approx(b, rel=REL, abs=1e-12)

    def test_empty_items(self, native, fallback) -> None:
        for strategy in STRATEGIES:
            assert native.score([], strategy, EngineConfig(), 0.0) == []
            assert fallback.score([], strategy, EngineConfig(), 0.0) == []


class TestConsensusParity:
    def test_statement_stats_match(self, parity_votes, native, fallback) -> None:
        matrix = VoteMatrix.from_events(parity_votes)
        for a, b in zip(native.statement_stats(matrix), fallback.statement_stats(matrix)):
            assert a.statement_id == b.statement_id
            assert (a.agree_count, a.disagree_count, a.pass_count, a.total_votes) == (
                b.agree_count,
                b.disagree_count,
                b.pass_count,
                b.total_votes,
            )
            assert a.agreement_ratio == pytest.approx(b.agreement_ratio, rel=REL)
            assert a.divisiveness == pytest.approx(b.divisiveness, rel=REL, abs=1e-12)

    def test_agreement_rates_match(self, parity_votes, native, fallback) -> None:
        matrix = VoteMatrix.from_events(parity_votes)
        assert native.agreement_rates(matrix) == pytest.approx(
            fallback.agreement_rates(matrix), rel=REL
        )

    def test_raw_labels_match(self, parity_votes, native, fallback) -> None:
        matrix = VoteMatrix.from_events(parity_votes)
        assert native.cluster(matrix, 3, 100) == fallback.cluster(matrix, 3, 100)

    def test_results_match(self, parity_votes) -> None:
        a = analyze_consensus(parity_votes, backend="native")
        b = analyze_consensus(parity_votes, backend="fallback")
        assert a.backend == "native"
        assert b.backend == "fallback"
        assert a.total_participants == b.total_participants == 10
        assert _membership(a) == _membership(b)
        for ca, cb in zip(a.clusters, b.clusters):
            assert ca.avg_agreement == pytest.approx(cb.avg_agreement, rel=REL)
        for sa, sb in zip(a.statements, b.statements):
            assert sa.group_consensus == pytest.approx(sb.group_consensus, rel=REL)
            assert sa.band == sb.band

    @pytest.mark.parametrize("seed", [11, 12, 13, 14, 15])
    def test_random_matrices_match(self, make_random_votes, seed: int) -> None:
        votes = make_random_votes(seed, participants=40, statements=8)
        a = analyze_consensus(votes, backend="native")
        b = analyze_consensus(votes, backend="fallback")
        assert _membership(a) == _membership(b)
        assert [s.agreement_ratio for s in a.statements] == pytest.approx(
            [s.agreement_ratio for s in b.statements], rel=REL
        )

    @pytest.mark.parametrize("iterations", [0, 1])
    def test_capped_iterations_match(self, parity_votes, native, fallback, iterations: int) -> None:
        matrix = VoteMatrix.from_events(parity_votes)
        labels = native.cluster(matrix, 3, iterations)
        assert len(labels) == len(matrix.participants)
        assert labels == fallback.cluster(matrix, 3, iterations)
