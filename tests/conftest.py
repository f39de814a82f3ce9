"""Shared pytest fixtures for consensus-rank test suite."""

from __future__ import annotations

import os
import random
from datetime import datetime, timezone
from typing import Any

import pytest

from consensus_rank.config import EngineConfig
from consensus_rank.models import ScorableItem, VoteEvent

FIXED_NOW = datetime(2025, 6, 2, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's .env from leaking into tests."""
    for name in list(os.environ):
        if name.startswith("CONSENSUS_RANK_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def config() -> EngineConfig:
    return EngineConfig()


@pytest.fixture()
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture()
def make_item() -> callable:
    """Factory fixture that returns ScorableItem objects with configurable fields."""

    def _factory(**overrides: Any) -> ScorableItem:
        defaults: dict[str, Any] = {
            "id": "post-1",
            "created_at": "2025-06-01T10:00:00Z",
            "like_count": 0,
            "downvote_count": 0,
            "reply_count": 0,
            "repost_count": 0,
        }
        defaults.update(overrides)
        return ScorableItem(**defaults)

    return _factory


@pytest.fixture()
def parity_items() -> list[ScorableItem]:
    """50 items with mixed ages and engagement, seeded for reproducibility."""
    rng = random.Random(1234)
    base = FIXED_NOW.timestamp()
    items = []
    for i in range(47):
        items.append(
            ScorableItem(
                id=f"item-{i:02d}",
                created_at=base - rng.randint(0, 96 * 3600),
                like_count=rng.randint(0, 60),
                downvote_count=rng.randint(0, 30),
                reply_count=rng.randint(0, 15),
                repost_count=rng.randint(0, 10),
            )
        )
    # A few exact ties and empty records
    items.append(ScorableItem(id="tie-a", created_at=base - 3600, like_count=5))
    items.append(ScorableItem(id="tie-b", created_at=base - 3600, like_count=5))
    items.append(ScorableItem(id="empty"))
    return items


@pytest.fixture()
def parity_votes() -> list[VoteEvent]:
    """10 participants x 3 statements: two factions plus a few undecided."""
    votes = []
    for p in range(4):
        for s, value in zip(("s1", "s2", "s3"), (1, 1, -1)):
            votes.append(VoteEvent(f"p{p}", s, value))
    for p in range(4, 8):
        for s, value in zip(("s1", "s2", "s3"), (-1, -1, 1)):
            votes.append(VoteEvent(f"p{p}", s, value))
    votes += [
        VoteEvent("p8", "s1", 0),
        VoteEvent("p8", "s2", 1),
        VoteEvent("p9", "s3", 0),
        VoteEvent("p9", "s1", -1),
        # p0 changes their mind on s3
        VoteEvent("p0", "s3", 0),
    ]
    return votes


@pytest.fixture()
def make_random_votes() -> callable:
    """Factory for sparse random votes; roughly a fifth of cells left unvoted."""

    def _factory(seed: int, participants: int = 30, statements: int = 6) -> list[VoteEvent]:
        rng = random.Random(seed)
        votes = []
        for p in range(participants):
            leaning = rng.choice((-1, 1))
            for s in range(statements):
                if rng.random() < 0.2:
                    continue
                roll = rng.random()
                if roll < 0.6:
                    value = leaning if s % 2 == 0 else -leaning
                elif roll < 0.8:
                    value = 0
                else:
                    value = rng.choice((-1, 1))
                votes.append(VoteEvent(f"user-{p}", f"stmt-{s}", value))
        return votes

    return _factory
