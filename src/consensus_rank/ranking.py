"""Ranking engine: order items by one scoring strategy.

The order is total: descending score, then ``id`` ascending. Ranking a
ranked list again with the same strategy and inputs returns the same
order.
"""

from __future__ import annotations

import time
from typing import Any, Iterable

from .backends import BackendSelector, get_selector
from .config import EngineConfig
from .errors import UnknownStrategyError
from .log import get_logger
from .models import ScorableItem, parse_timestamp
from .scoring import STRATEGIES

logger = get_logger(__name__).bind(component="ranking")

# Scores are compared at this many decimals so that equal scores computed
# by different backends still tie and fall through to the id tiebreak.
SCORE_PRECISION = 12


def _coerce_items(items: Iterable[ScorableItem | dict[str, Any]]) -> list[ScorableItem]:
    return [
        item if isinstance(item, ScorableItem) else ScorableItem.from_dict(item)
        for item in items
    ]


def _resolve_backend(
    backend: BackendSelector | str | None, config: EngineConfig
) -> BackendSelector:
    if isinstance(backend, BackendSelector):
        return backend
    return get_selector(backend or config.backend)


def _resolve_now(now: Any) -> float:
    if now is None:
        return time.time()
    return parse_timestamp(now)


def check_strategy(strategy: str) -> str:
    """Return the strategy name, or raise UnknownStrategyError."""
    if strategy not in STRATEGIES:
        raise UnknownStrategyError(strategy, STRATEGIES)
    return strategy


def score_items(
    items: Iterable[ScorableItem | dict[str, Any]],
    strategy: str,
    config: EngineConfig | None = None,
    now: Any = None,
    exclude: Iterable[str] | None = None,
    backend: BackendSelector | str | None = None,
) -> list[tuple[ScorableItem, float]]:
    """Score and order items, keeping each item's score.

    Args:
        items: ScorableItem objects or feed record dicts
        strategy: One of newest, trending, wilson, controversial
        config: Weights and constants; read from environment if omitted
        now: Reference instant for trending (datetime, ISO string or
            epoch seconds); defaults to the current time
        exclude: Item ids to drop before ranking (e.g. already seen)
        backend: Selector instance or backend preference name

    Returns:
        (item, score) pairs, best first

    Raises:
        UnknownStrategyError: If the strategy name is not recognized
    """
    check_strategy(strategy)
    config = config or EngineConfig()

    candidates = _coerce_items(items)
    if exclude:
        hidden = {str(item_id) for item_id in exclude}
        candidates = [item for item in candidates if item.id not in hidden]
    if not candidates:
        return []

    selector = _resolve_backend(backend, config)
    scores, used = selector.run(
        "score", candidates, strategy, config, _resolve_now(now)
    )

    ranked = sorted(
        zip(candidates, scores),
        key=lambda pair: (-round(pair[1], SCORE_PRECISION), pair[0].id),
    )
    logger.debug("ranked items", strategy=strategy, count=len(ranked), backend=used)
    return ranked


def rank(
    items: Iterable[ScorableItem | dict[str, Any]],
    strategy: str,
    config: EngineConfig | None = None,
    now: Any = None,
    exclude: Iterable[str] | None = None,
    backend: BackendSelector | str | None = None,
) -> list[ScorableItem]:
    """Return the items reordered by a strategy. See ``score_items``."""
    return [
        item
        for item, _ in score_items(items, strategy, config, now, exclude, backend)
    ]


def rank_ids(
    items: Iterable[ScorableItem | dict[str, Any]],
    strategy: str,
    config: EngineConfig | None = None,
    now: Any = None,
    exclude: Iterable[str] | None = None,
    backend: BackendSelector | str | None = None,
) -> list[str]:
    """Return the ordered item ids. See ``score_items``."""
    return [item.id for item in rank(items, strategy, config, now, exclude, backend)]
