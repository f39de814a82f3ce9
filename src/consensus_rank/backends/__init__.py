"""Interchangeable compute backends for scoring and consensus analysis."""

from __future__ import annotations

from .interfaces import TIE_TOLERANCE, ComputeBackend
from .fallback import FallbackBackend
from .native import NativeBackend
from .registry import BackendRegistry
from .selector import BackendSelector, get_selector, probe_backend


def register_default_backends() -> None:
    """Register the built-in backends (native preferred over fallback)."""
    BackendRegistry.register("native", NativeBackend, priority=10)
    BackendRegistry.register("fallback", FallbackBackend, priority=0)


register_default_backends()

__all__ = [
    "BackendRegistry",
    "BackendSelector",
    "ComputeBackend",
    "FallbackBackend",
    "NativeBackend",
    "TIE_TOLERANCE",
    "get_selector",
    "probe_backend",
    "register_default_backends",
]
