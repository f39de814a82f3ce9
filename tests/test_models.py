"""Tests for consensus_rank.models — data containers and timestamp parsing."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from consensus_rank.models import (
    Cluster,
    ConsensusResult,
    ScorableItem,
    StatementResult,
    VoteEvent,
    parse_iso_datetime,
    parse_timestamp,
)


class TestParseTimestamp:
    def test_iso_with_z_suffix(self) -> None:
        assert parse_timestamp("1970-01-02T00:00:00Z") == 86400.0

    def test_iso_with_offset(self) -> None:
        assert parse_timestamp("1970-01-01T02:00:00+01:00") == 3600.0

    def test_naive_datetime_is_utc(self) -> None:
        assert parse_timestamp(datetime(1970, 1, 1, 1, 0, 0)) == 3600.0

    def test_aware_datetime(self) -> None:
        dt = datetime(2025, 6, 1, tzinfo=timezone.utc)
        assert parse_timestamp(dt) == dt.timestamp()

    def test_numbers_pass_through(self) -> None:
        assert parse_timestamp(1_700_000_000) == 1_700_000_000.0

    @pytest.mark.parametrize("value", [None, "", "not a date", True])
    def test_missing_or_bad_values_are_epoch(self, value: object) -> None:
        assert parse_timestamp(value) == 0.0


class TestParseIsoDatetime:
    def test_z_suffix_is_utc(self) -> None:
        assert parse_iso_datetime("2025-06-02T12:00:00Z") == datetime(
            2025, 6, 2, 12, tzinfo=timezone.utc
        )

    def test_naive_is_utc(self) -> None:
        assert parse_iso_datetime("2025-06-02T12:00:00").tzinfo == timezone.utc

    def test_rejects_non_iso(self) -> None:
        with pytest.raises(ValueError):
            parse_iso_datetime("yesterday")


class TestScorableItem:
    def test_defaults(self) -> None:
        item = ScorableItem(id="x")
        assert item.like_count == 0
        assert item.downvote_count == 0
        assert item.reply_count == 0
        assert item.repost_count == 0
        assert item.timestamp == 0.0

    def test_none_counts_become_zero(self) -> None:
        item = ScorableItem(id="x", like_count=None, reply_count=None)
        assert item.like_count == 0
        assert item.reply_count == 0

    def test_negative_counts_clamp(self) -> None:
        item = ScorableItem(id="x", like_count=-3, downvote_count=-1)
        assert item.like_count == 0
        assert item.downvote_count == 0

    def test_id_is_string(self) -> None:
        assert ScorableItem(id=42).id == "42"

    def test_from_dict_snake_case(self) -> None:
        item = ScorableItem.from_dict(
            {"id": "a", "created_at": "2025-06-01T00:00:00Z", "like_count": 4}
        )
        assert item.id == "a"
        assert item.like_count == 4
        assert item.timestamp == datetime(2025, 6, 1, tzinfo=timezone.utc).timestamp()

    def test_from_dict_feed_shape(self) -> None:
        item = ScorableItem.from_dict(
            {
                "uri": "at://did:plc:abc/app.bsky.feed.post/1",
                "createdAt": "2025-06-01T00:00:00Z",
                "likeCount": 9,
                "replyCount": 2,
                "repostCount": 1,
            }
        )
        assert item.id == "at://did:plc:abc/app.bsky.feed.post/1"
        assert (item.like_count, item.reply_count, item.repost_count) == (9, 2, 1)
        assert item.downvote_count == 0

    def test_from_dict_without_id_raises(self) -> None:
        with pytest.raises(ValueError, match="no 'id'"):
            ScorableItem.from_dict({"like_count": 1})

    def test_to_dict_round_trips_fields(self) -> None:
        data = {
            "id": "a",
            "created_at": "2025-06-01T00:00:00Z",
            "like_count": 1,
            "downvote_count": 2,
            "reply_count": 3,
            "repost_count": 4,
        }
        assert ScorableItem.from_dict(data).to_dict() == data

    def test_to_dict_serializes_datetime(self) -> None:
        dt = datetime(2025, 6, 1, tzinfo=timezone.utc)
        assert ScorableItem(id="a", created_at=dt).to_dict()["created_at"] == dt.isoformat()


class TestVoteEvent:
    def test_from_dict(self) -> None:
        vote = VoteEvent.from_dict({"participant_id": "p", "statement_id": "s", "value": -1})
        assert vote == VoteEvent("p", "s", -1)

    def test_from_dict_accepts_user_id(self) -> None:
        vote = VoteEvent.from_dict({"user_id": "did:plc:xyz", "statement_id": "1", "value": 1})
        assert vote.participant_id == "did:plc:xyz"

    def test_is_hashable(self) -> None:
        assert len({VoteEvent("p", "s", 1), VoteEvent("p", "s", 1)}) == 1

    def test_from_dict_without_participant_raises(self) -> None:
        with pytest.raises(ValueError, match="no 'participant_id' or 'user_id'"):
            VoteEvent.from_dict({"statement_id": "s1", "value": 1})

    def test_from_dict_without_statement_raises(self) -> None:
        with pytest.raises(ValueError, match="no 'statement_id'"):
            VoteEvent.from_dict({"user_id": "alice", "value": 1})


class TestResults:
    def _result(self) -> ConsensusResult:
        return ConsensusResult(
            total_participants=3,
            statements=[
                StatementResult("s1", 0.5, 1.0, 2, 1, 1, 0),
            ],
            clusters=[
                Cluster(0, ["a", "b"], 0.75),
                Cluster(1, ["c"], 0.0),
            ],
            backend="fallback",
        )

    def test_cluster_member_count(self) -> None:
        assert Cluster(0, ["a", "b", "c"], 0.5).member_count == 3

    def test_cluster_count_follows_clusters(self) -> None:
        assert self._result().cluster_count == 2
        assert ConsensusResult().cluster_count == 0

    def test_lookups(self) -> None:
        result = self._result()
        assert result.statement("s1").agree_count == 1
        assert result.statement("missing") is None
        assert result.cluster_of("c").cluster_id == 1
        assert result.cluster_of("z") is None

    def test_to_dict(self) -> None:
        data = self._result().to_dict()
        assert data["cluster_count"] == 2
        assert data["clusters"][0]["member_count"] == 2
        assert data["statements"][0]["statement_id"] == "s1"
        assert data["backend"] == "fallback"
