"""Configuration and environment management."""

import os
from dataclasses import dataclass, field
from dotenv import load_dotenv

load_dotenv()

BACKEND_CHOICES = ["auto", "native", "fallback"]

PRESETS: dict[str, dict] = {
    "classic": {
        "w_reply": 1.0,
        "w_repost": 1.0,
        "gravity": 1.5,
        "description": "Classic hot ranking decay. Default.",
    },
    "fast-decay": {
        "w_reply": 1.0,
        "w_repost": 2.0,
        "gravity": 1.8,
        "description": "Old posts drop quickly; reposts weigh double.",
    },
    "slow-decay": {
        "w_reply": 0.5,
        "w_repost": 1.0,
        "gravity": 1.2,
        "description": "Engagement lingers longer; replies weigh half.",
    },
}


def get_preset(name: str) -> dict:
    """Get a preset configuration by name.

    Args:
        name: Preset name (classic, fast-decay, slow-decay)

    Returns:
        Preset dict with w_reply, w_repost, gravity, description

    Raises:
        ValueError: If preset name is not recognized
    """
    if name not in PRESETS:
        raise ValueError(
            f"Unknown preset '{name}'. Available: {', '.join(PRESETS.keys())}"
        )
    return PRESETS[name]


def list_presets() -> dict[str, dict]:
    """Return all available presets."""
    return PRESETS.copy()


@dataclass
class EngineConfig:
    """Engine configuration loaded from environment."""

    # Trending
    w_reply: float = field(
        default_factory=lambda: _env_float("CONSENSUS_RANK_W_REPLY", 1.0)
    )
    w_repost: float = field(
        default_factory=lambda: _env_float("CONSENSUS_RANK_W_REPOST", 1.0)
    )
    gravity: float = field(
        default_factory=lambda: _env_float("CONSENSUS_RANK_GRAVITY", 1.5)
    )

    # Wilson
    wilson_confidence: float = field(
        default_factory=lambda: _env_float("CONSENSUS_RANK_WILSON_CONFIDENCE", 0.95)
    )

    # Clustering
    cluster_count: int | None = field(
        default_factory=lambda: _parse_cluster_count()
    )
    max_clusters: int = field(
        default_factory=lambda: int(os.getenv("CONSENSUS_RANK_MAX_CLUSTERS", "4"))
    )
    max_iterations: int = field(
        default_factory=lambda: int(os.getenv("CONSENSUS_RANK_MAX_ITERATIONS", "100"))
    )

    # Backend selection
    backend: str = field(
        default_factory=lambda: os.getenv("CONSENSUS_RANK_BACKEND", "auto").strip().lower()
    )

    log_level: str = field(
        default_factory=lambda: os.getenv("CONSENSUS_RANK_LOG_LEVEL", "WARNING")
    )

    def apply_preset(self, name: str) -> "EngineConfig":
        """Overwrite the trending weights with a named preset."""
        preset = get_preset(name)
        self.w_reply = preset["w_reply"]
        self.w_repost = preset["w_repost"]
        self.gravity = preset["gravity"]
        return self

    def validate(self) -> list[str]:
        """Validate configuration, return list of issues."""
        issues = []
        if self.gravity <= 0:
            issues.append(f"gravity must be positive, got {self.gravity}")
        if self.w_reply < 0 or self.w_repost < 0:
            issues.append(
                f"engagement weights must be non-negative, "
                f"got w_reply={self.w_reply}, w_repost={self.w_repost}"
            )
        if not 0 < self.wilson_confidence < 1:
            issues.append(
                f"wilson_confidence must be between 0 and 1, "
                f"got {self.wilson_confidence}"
            )
        if self.cluster_count is not None and self.cluster_count < 1:
            issues.append(f"cluster_count must be at least 1, got {self.cluster_count}")
        if self.max_clusters < 1:
            issues.append(f"max_clusters must be at least 1, got {self.max_clusters}")
        if self.max_iterations < 1:
            issues.append(f"max_iterations must be at least 1, got {self.max_iterations}")
        if self.backend not in BACKEND_CHOICES:
            issues.append(
                f"Unknown backend '{self.backend}'. "
                f"Available: {', '.join(BACKEND_CHOICES)}"
            )
        return issues


def _env_float(name: str, default: float) -> float:
    """Read a float from the environment, falling back on blank values."""
    raw = os.getenv(name, "")
    if not raw.strip():
        return default
    return float(raw)


def _parse_cluster_count() -> int | None:
    """Parse a fixed cluster count from environment; blank or 'auto' means derived."""
    raw = os.getenv("CONSENSUS_RANK_CLUSTERS", "").strip().lower()
    if not raw or raw == "auto":
        return None
    return int(raw)
