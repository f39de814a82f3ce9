"""Scoring strategies for content ranking.

Each strategy maps one item to a float; higher ranks first. These scalar
functions are the reference definitions: the fallback backend calls them
directly and the native backend vectorizes the same formulas.

Strategies:
    newest:        created_at instant
    trending:      engagement / (age_hours + 2) ** gravity
    wilson:        lower bound of the Wilson score interval ("Best")
    controversial: volume scaled by how evenly likes/downvotes split
"""

import math
from statistics import NormalDist

from .models import ScorableItem

STRATEGIES = ["newest", "trending", "wilson", "controversial"]

# Two-sided z-scores for common confidence levels
Z_SCORES = {
    0.80: 1.28,
    0.90: 1.645,
    0.95: 1.96,
    0.99: 2.576,
}

SECONDS_PER_HOUR = 3600.0


def z_for_confidence(confidence: float) -> float:
    """Return the two-sided z-score for a confidence level.

    Common levels use the conventional rounded values (0.95 -> 1.96);
    anything else falls back to the exact normal quantile.
    """
    if confidence in Z_SCORES:
        return Z_SCORES[confidence]
    return NormalDist().inv_cdf(1 - (1 - confidence) / 2)


def newest_score(item: ScorableItem) -> float:
    return item.timestamp


def engagement(item: ScorableItem, w_reply: float = 1.0, w_repost: float = 1.0) -> float:
    """Net engagement: likes minus downvotes plus weighted replies and reposts."""
    return (
        item.like_count
        - item.downvote_count
        + w_reply * item.reply_count
        + w_repost * item.repost_count
    )


def trending_score(
    item: ScorableItem,
    now: float,
    w_reply: float = 1.0,
    w_repost: float = 1.0,
    gravity: float = 1.5,
) -> float:
    """Hot-ranking score: engagement decayed by a power of age in hours.

    Args:
        item: Item to score
        now: Reference instant in epoch seconds
        w_reply: Weight of one reply
        w_repost: Weight of one repost
        gravity: Decay exponent (higher = faster decay)

    Returns:
        Score, negative when downvotes outweigh positive engagement
    """
    age_hours = max(0.0, now - item.timestamp) / SECONDS_PER_HOUR
    return engagement(item, w_reply, w_repost) / math.pow(age_hours + 2.0, gravity)


def wilson_score(likes: int, downvotes: int, z: float = 1.96) -> float:
    """Calculate the Wilson score interval lower bound.

    Ranks by credible approval rather than raw vote difference: a
    handful of likes with no downvotes stays below a large sample with
    the same or slightly lower approval.

    Args:
        likes: Positive observations
        downvotes: Negative observations
        z: z-score of the confidence level (1.96 for 95%)

    Returns:
        Lower bound in [0, 1]; 0 when there are no likes
    """
    n = likes + downvotes
    if likes == 0:
        return 0.0

    p_hat = likes / n
    z2 = z * z
    centre = p_hat + z2 / (2 * n)
    spread = z * math.sqrt((p_hat * (1 - p_hat) + z2 / (4 * n)) / n)
    lower = (centre - spread) / (1 + z2 / n)
    return max(0.0, lower)


def controversial_score(likes: int, downvotes: int) -> float:
    """Score that peaks at an even split and grows with volume.

    A 1000/1000 split outranks 10/10, and 10/10 outranks 19/1.
    """
    total = likes + downvotes
    if total == 0:
        return 0.0
    ratio = likes / total
    return total * (1 - 2 * abs(ratio - 0.5))


def agreement_ratio(agrees: int, disagrees: int) -> float:
    """Share of decided (non-pass) votes that agree; 0 with no decided votes."""
    decided = agrees + disagrees
    if decided == 0:
        return 0.0
    return agrees / decided


def divisiveness(agrees: int, disagrees: int) -> float:
    """How evenly decided votes split, in [0, 1]; 0 with no decided votes.

    Same shape as the controversial score without the volume factor.
    """
    if agrees + disagrees == 0:
        return 0.0
    return 1 - 2 * abs(agreement_ratio(agrees, disagrees) - 0.5)


def smoothed_agree_probability(agrees: int, seen: int) -> float:
    """Laplace-smoothed probability of agreeing: (A + 1) / (S + 2)."""
    return (agrees + 1) / (seen + 2)
