"""Backend registry for discovery and lookup.

Maintains a class-level mapping from backend names to backend classes
and their selection priority, allowing the selector and CLI to discover
available backends at runtime.
"""

from __future__ import annotations

from ..errors import BackendUnavailableError


class BackendRegistry:
    """Class-level registry mapping backend names to backend classes."""

    _registry: dict[str, tuple[type, int]] = {}

    @classmethod
    def register(cls, name: str, backend_class: type, priority: int = 0) -> None:
        """Register a backend class.

        Args:
            name: Backend identifier (e.g., "native").
            backend_class: Class implementing ComputeBackend.
            priority: Higher priority backends are preferred by "auto".
        """
        cls._registry[name] = (backend_class, priority)

    @classmethod
    def get(cls, name: str) -> type:
        """Look up a backend class by name.

        Raises:
            BackendUnavailableError: If the name is not registered.
        """
        if name not in cls._registry:
            available = ", ".join(cls._registry.keys()) or "(none)"
            raise BackendUnavailableError(
                f"Unknown backend '{name}'. Available: {available}"
            )
        return cls._registry[name][0]

    @classmethod
    def list_backends(cls) -> list[str]:
        """Return registered names, highest priority first (ties by name)."""
        return [
            name
            for name, _ in sorted(
                cls._registry.items(), key=lambda kv: (-kv[1][1], kv[0])
            )
        ]

    @classmethod
    def _clear(cls) -> None:
        """Clear the registry. Intended for testing only."""
        cls._registry = {}
