from __future__ import annotations

from typing import Callable, Dict

from .aws import AwsCollector
from .base import Collector
from .gcp import GcpCollector

CollectorFactory = Callable[[], Collector]


class CollectorRegistry:
    """
    Registry mapping provider names (the CLI subcommands) to collector factories.
    """

    def __init__(self) -> None:
        self._map: Dict[str, CollectorFactory] = {}

    def register(self, name: str, factory: CollectorFactory) -> None:
        self._map[name] = factory

    def is_registered(self, name: str) -> bool:
        return name in self._map

    def names(self) -> list[str]:
        return sorted(self._map.keys())

    def get(self, name: str) -> Collector:
        factory = self._map.get(name)
        if factory is None:
            raise KeyError(f"No collector registered for provider '{name}'")
        return factory()


_global_registry = CollectorRegistry()


def register_collector(name: str, factory: CollectorFactory) -> None:
    _global_registry.register(name, factory)


def get_collector(name: str) -> Collector:
    return _global_registry.get(name)


def list_providers() -> list[str]:
    return _global_registry.names()


register_collector(AwsCollector.name, AwsCollector)
register_collector(GcpCollector.name, GcpCollector)
