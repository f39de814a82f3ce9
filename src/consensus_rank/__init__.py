"""consensus-rank: content ranking and Polis-style consensus analysis."""

__version__ = "0.1.0"

from .log import ensure_configured

ensure_configured()

# Public API
from .config import EngineConfig
from .consensus import analyze_consensus
from .errors import (
    BackendUnavailableError,
    ConsensusRankError,
    InvalidVoteError,
    UnknownStrategyError,
)
from .models import Cluster, ConsensusResult, ScorableItem, StatementResult, VoteEvent
from .ranking import rank, rank_ids, score_items
from .scoring import STRATEGIES
from .votes import VoteMatrix

__all__ = [
    "BackendUnavailableError",
    "Cluster",
    "ConsensusRankError",
    "ConsensusResult",
    "EngineConfig",
    "InvalidVoteError",
    "STRATEGIES",
    "ScorableItem",
    "StatementResult",
    "UnknownStrategyError",
    "VoteEvent",
    "VoteMatrix",
    "__version__",
    "analyze_consensus",
    "rank",
    "rank_ids",
    "score_items",
]
