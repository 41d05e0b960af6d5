"""
Alert store registry.

Backends are discovered by introspecting AlertStore subclasses.
"""

from typing import Any, Dict, Type

from .base import AlertStore
from .json_file import JsonFileAlertStore
from .memory import InMemoryAlertStore


def _build_registry() -> Dict[str, Type[AlertStore]]:
    """Build the registry by discovering AlertStore subclasses."""
    registry = {}
    for cls in AlertStore.__subclasses__():
        # Derive backend name from class name: InMemoryAlertStore -> 'inmemory'
        kind = cls.__name__.replace("AlertStore", "").lower()
        registry[kind] = cls
    return registry


registry = _build_registry()


def create_store(kind: str, **kwargs: Any) -> AlertStore:
    """
    Instantiate a registered store backend.

    Raises:
        KeyError: If the backend is unknown.
    """
    if kind not in registry:
        raise KeyError(f"Unknown alert store '{kind}'. Available: {sorted(registry)}")
    return registry[kind](**kwargs)


__all__ = [
    "AlertStore",
    "InMemoryAlertStore",
    "JsonFileAlertStore",
    "create_store",
    "registry",
]
