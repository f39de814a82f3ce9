"""Exceptions raised by the ranking and consensus engine.

Only contract violations raise. Degenerate but well-typed input (empty
lists, zero counts, zero votes) always produces a defined result.
"""

from __future__ import annotations


class ConsensusRankError(Exception):
    """Base class for all engine errors."""


class UnknownStrategyError(ConsensusRankError, ValueError):
    """A ranking strategy name that is not registered."""

    def __init__(self, strategy: str, available: list[str]) -> None:
        self.strategy = strategy
        self.available = available
        super().__init__(
            f"Unknown strategy '{strategy}'. Available: {', '.join(available)}"
        )


class InvalidVoteError(ConsensusRankError, ValueError):
    """A vote whose value is not one of -1, 0 or 1."""

    def __init__(self, value: object, participant_id: str = "", statement_id: str = "") -> None:
        self.value = value
        self.participant_id = participant_id
        self.statement_id = statement_id
        super().__init__(
            f"Invalid vote value {value!r} from participant '{participant_id}' "
            f"on statement '{statement_id}'. Expected -1, 0 or 1"
        )


class BackendUnavailableError(ConsensusRankError):
    """An explicitly requested backend name that is not registered."""
