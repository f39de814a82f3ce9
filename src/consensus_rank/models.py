"""Data containers shared by the ranking and consensus engine.

Items and votes are supplied by the surrounding application; results are
plain dataclasses with ``to_dict()`` so the caller can serialize them
however it likes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .log import get_logger

logger = get_logger(__name__).bind(component="models")

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_iso_datetime(text: str) -> datetime:
    """Parse an ISO-8601 string; a trailing ``Z`` and naive values mean UTC.

    Raises:
        ValueError: If the text is not ISO-8601
    """
    text = text.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_timestamp(value: Any) -> float:
    """Convert a created_at value to epoch seconds.

    Accepts ISO-8601 strings (a trailing ``Z`` is UTC), datetimes (naive
    means UTC) and numbers already in epoch seconds. Missing or
    unparseable values map to the epoch start.
    """
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = parse_iso_datetime(str(value))
        except ValueError:
            logger.warning("unparseable timestamp, using epoch", value=str(value))
            return 0.0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def _count(value: Any) -> int:
    """Coerce a count field: absent is 0, negatives clamp to 0."""
    if value is None:
        return 0
    return max(0, int(value))


@dataclass
class ScorableItem:
    """One rankable content unit (a post, comment or thread)."""

    id: str
    created_at: Any = None
    like_count: int = 0
    downvote_count: int = 0
    reply_count: int = 0
    repost_count: int = 0
    timestamp: float = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.id = str(self.id)
        self.like_count = _count(self.like_count)
        self.downvote_count = _count(self.downvote_count)
        self.reply_count = _count(self.reply_count)
        self.repost_count = _count(self.repost_count)
        self.timestamp = parse_timestamp(self.created_at)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScorableItem:
        """Build an item from a feed record.

        Understands both snake_case fields and the camelCase shape of the
        feed API (``uri``, ``likeCount``, ``createdAt``...).
        """
        item_id = data.get("id", data.get("uri"))
        if item_id is None:
            raise ValueError(f"Item record has no 'id' or 'uri': {data!r}")
        return cls(
            id=item_id,
            created_at=data.get("created_at", data.get("createdAt")),
            like_count=data.get("like_count", data.get("likeCount")),
            downvote_count=data.get("downvote_count", data.get("downvoteCount")),
            reply_count=data.get("reply_count", data.get("replyCount")),
            repost_count=data.get("repost_count", data.get("repostCount")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dictionary."""
        created = self.created_at
        if isinstance(created, datetime):
            created = created.isoformat()
        return {
            "id": self.id,
            "created_at": created,
            "like_count": self.like_count,
            "downvote_count": self.downvote_count,
            "reply_count": self.reply_count,
            "repost_count": self.repost_count,
        }


@dataclass(frozen=True)
class VoteEvent:
    """One ternary vote: -1 disagree, 0 pass, +1 agree."""

    participant_id: str
    statement_id: str
    value: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VoteEvent:
        """Build a vote from a record; ``user_id`` is accepted for participant_id.

        Raises:
            ValueError: If the record names no participant or no statement
        """
        participant = data.get("participant_id", data.get("user_id"))
        if participant is None:
            raise ValueError(f"Vote record has no 'participant_id' or 'user_id': {data!r}")
        statement = data.get("statement_id")
        if statement is None:
            raise ValueError(f"Vote record has no 'statement_id': {data!r}")
        return cls(
            participant_id=str(participant),
            statement_id=str(statement),
            value=data.get("value"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "participant_id": self.participant_id,
            "statement_id": self.statement_id,
            "value": self.value,
        }


@dataclass
class StatementResult:
    """Vote statistics for a single statement."""

    statement_id: str
    agreement_ratio: float
    divisiveness: float
    total_votes: int
    agree_count: int
    disagree_count: int
    pass_count: int
    group_consensus: float = 0.5
    band: str = "disagree"

    def to_dict(self) -> dict[str, Any]:
        return {
            "statement_id": self.statement_id,
            "agreement_ratio": self.agreement_ratio,
            "divisiveness": self.divisiveness,
            "total_votes": self.total_votes,
            "agree_count": self.agree_count,
            "disagree_count": self.disagree_count,
            "pass_count": self.pass_count,
            "group_consensus": self.group_consensus,
            "band": self.band,
        }


@dataclass
class Cluster:
    """A group of participants with similar voting patterns."""

    cluster_id: int
    member_ids: list[str]
    avg_agreement: float

    @property
    def member_count(self) -> int:
        return len(self.member_ids)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cluster_id": self.cluster_id,
            "member_ids": list(self.member_ids),
            "member_count": self.member_count,
            "avg_agreement": self.avg_agreement,
        }


@dataclass
class ConsensusResult:
    """Complete result of a consensus analysis run."""

    total_participants: int = 0
    statements: list[StatementResult] = field(default_factory=list)
    clusters: list[Cluster] = field(default_factory=list)
    backend: str = ""
    duplicate_votes: int = 0

    @property
    def cluster_count(self) -> int:
        return len(self.clusters)

    def statement(self, statement_id: str) -> StatementResult | None:
        """Look up the result for one statement."""
        for result in self.statements:
            if result.statement_id == statement_id:
                return result
        return None

    def cluster_of(self, participant_id: str) -> Cluster | None:
        """Return the cluster a participant belongs to."""
        for cluster in self.clusters:
            if participant_id in cluster.member_ids:
                return cluster
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dictionary."""
        return {
            "total_participants": self.total_participants,
            "cluster_count": self.cluster_count,
            "statements": [s.to_dict() for s in self.statements],
            "clusters": [c.to_dict() for c in self.clusters],
            "backend": self.backend,
            "duplicate_votes": self.duplicate_votes,
        }
