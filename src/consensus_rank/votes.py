"""Participant x statement vote matrix.

Built from a flat stream of vote events. A later vote from the same
participant on the same statement replaces the earlier one (last write
wins by arrival order), so callers who need reproducible results must
supply events in a deterministic order.
"""

from __future__ import annotations

from typing import Any, Iterable

from .errors import InvalidVoteError
from .log import get_logger
from .models import VoteEvent

logger = get_logger(__name__).bind(component="vote_matrix")

VALID_VALUES = (-1, 0, 1)


def validate_vote(event: VoteEvent) -> int:
    """Return the vote value as an int, or raise InvalidVoteError."""
    value = event.value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidVoteError(value, event.participant_id, event.statement_id)
    if value not in VALID_VALUES:
        raise InvalidVoteError(value, event.participant_id, event.statement_id)
    return int(value)


class VoteMatrix:
    """Sparse, deduplicated votes indexed by (participant, statement).

    Participants and statements keep the order in which they first
    appear in the event stream. A missing vote ("never voted") is
    distinct from an explicit pass (0).
    """

    def __init__(self) -> None:
        self._votes: dict[tuple[str, str], int] = {}
        self._participants: dict[str, int] = {}
        self._statements: dict[str, int] = {}
        self.duplicates = 0

    @classmethod
    def from_events(cls, events: Iterable[VoteEvent | dict[str, Any]]) -> VoteMatrix:
        """Build a matrix from vote events (or vote dicts).

        Raises:
            InvalidVoteError: If any vote value is outside {-1, 0, 1}
            ValueError: If a vote dict names no participant or statement
            TypeError: If an event is neither a VoteEvent nor a dict
        """
        matrix = cls()
        for event in events:
            if isinstance(event, dict):
                event = VoteEvent.from_dict(event)
            elif not isinstance(event, VoteEvent):
                raise TypeError(
                    f"Expected a VoteEvent or vote dict, got {type(event).__name__}"
                )
            matrix.add(event)
        if matrix.duplicates:
            logger.debug("resolved duplicate votes", overwritten=matrix.duplicates)
        return matrix

    def add(self, event: VoteEvent) -> None:
        """Record one vote, replacing any earlier vote on the same pair."""
        value = validate_vote(event)
        key = (event.participant_id, event.statement_id)
        if key in self._votes:
            self.duplicates += 1
        self._votes[key] = value
        self._participants.setdefault(event.participant_id, len(self._participants))
        self._statements.setdefault(event.statement_id, len(self._statements))

    @property
    def participants(self) -> list[str]:
        return list(self._participants)

    @property
    def statements(self) -> list[str]:
        return list(self._statements)

    def __len__(self) -> int:
        return len(self._votes)

    def is_empty(self) -> bool:
        return not self._votes

    def vote(self, participant_id: str, statement_id: str) -> int | None:
        """Return the participant's vote on a statement, or None if absent."""
        return self._votes.get((participant_id, statement_id))

    def has_vote(self, participant_id: str, statement_id: str) -> bool:
        return (participant_id, statement_id) in self._votes

    def statement_votes(self, statement_id: str) -> dict[str, int]:
        """All votes on one statement, keyed by participant."""
        return {
            pid: self._votes[(pid, statement_id)]
            for pid in self._participants
            if (pid, statement_id) in self._votes
        }

    def participant_votes(self, participant_id: str) -> dict[str, int]:
        """All votes cast by one participant, keyed by statement."""
        return {
            sid: self._votes[(participant_id, sid)]
            for sid in self._statements
            if (participant_id, sid) in self._votes
        }

    def dense(self, fill: float = 0.0) -> list[list[float]]:
        """Rows per participant, one column per statement; missing votes get ``fill``."""
        return [
            [
                float(self._votes.get((pid, sid), fill))
                for sid in self._statements
            ]
            for pid in self._participants
        ]

    def voted_mask(self) -> list[list[bool]]:
        """Same shape as ``dense()``: True where a vote (including a pass) exists."""
        return [
            [(pid, sid) in self._votes for sid in self._statements]
            for pid in self._participants
        ]
