"""Backend selection with silent degradation.

The selector probes backends once when it is built and keeps the best
working one as primary, with the fallback backend behind it. Backend
failures (a failed probe, or an exception raised inside the primary
during a call) are logged and the work is redone on the fallback.
Contract errors are never swallowed.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from ..errors import ConsensusRankError
from ..log import get_logger
from .interfaces import ComputeBackend
from .registry import BackendRegistry

logger = get_logger(__name__).bind(component="backend_selector")

FALLBACK = "fallback"


def probe_backend(name: str) -> tuple[bool, str]:
    """Instantiate and probe a backend.

    Returns:
        Tuple of (available, detail). Detail is the failure message when
        the backend cannot run.
    """
    try:
        backend = BackendRegistry.get(name)()
        backend.probe()
    except ConsensusRankError:
        raise
    except Exception as exc:
        return False, f"{type(exc).__name__}: {exc}"
    return True, "ok"


class BackendSelector:
    """Dispatches engine operations to the preferred working backend.

    Args:
        preference: "auto" picks the highest-priority backend whose probe
            passes; a backend name pins that backend (still degrading to
            the fallback if it fails).
    """

    def __init__(self, preference: str = "auto") -> None:
        self.preference = preference
        self.fallback: ComputeBackend = BackendRegistry.get(FALLBACK)()
        self.primary: ComputeBackend = self._select(preference)

    def _select(self, preference: str) -> ComputeBackend:
        if preference == "auto":
            candidates = BackendRegistry.list_backends()
        else:
            BackendRegistry.get(preference)
            candidates = [preference]

        for name in candidates:
            if name == FALLBACK:
                return self.fallback
            available, detail = probe_backend(name)
            if available:
                logger.debug("selected backend", backend=name)
                return BackendRegistry.get(name)()
            logger.warning(
                "backend unavailable, degrading to fallback",
                backend=name,
                detail=detail,
            )
        return self.fallback

    @property
    def name(self) -> str:
        return self.primary.name

    def run(self, operation: str, *args: Any, **kwargs: Any) -> tuple[Any, str]:
        """Run an operation on the primary backend, degrading on failure.

        Returns:
            Tuple of (result, name of the backend that produced it).
        """
        method = getattr(self.primary, operation)
        try:
            return method(*args, **kwargs), self.primary.name
        except ConsensusRankError:
            raise
        except Exception as exc:
            if self.primary is self.fallback:
                raise
            logger.warning(
                "backend call failed, retrying on fallback",
                backend=self.primary.name,
                operation=operation,
                error=f"{type(exc).__name__}: {exc}",
            )
        return getattr(self.fallback, operation)(*args, **kwargs), self.fallback.name


@lru_cache(maxsize=None)
def get_selector(preference: str = "auto") -> BackendSelector:
    """Return the memoised selector for a preference."""
    return BackendSelector(preference)
