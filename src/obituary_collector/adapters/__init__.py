"""Source-family adapters and the registry that maps adapter types to them."""
from __future__ import annotations

from typing import TYPE_CHECKING

from ..exceptions import AdapterNotFoundError
from .base import BaseAdapter, ConnectionTest, SourceAdapter
from .dignity_memorial import DignityMemorialAdapter
from .frontrunner import FrontRunnerAdapter
from .generic_html import GenericHtmlAdapter
from .legacy_com import LegacyComAdapter
from .remembering_ca import RememberingCaAdapter
from .tribute_archive import TributeArchiveAdapter

if TYPE_CHECKING:
    from ..config import CollectorSettings
    from ..net import HttpFetcher

ADAPTER_CLASSES: tuple[type[BaseAdapter], ...] = (
    RememberingCaAdapter,
    LegacyComAdapter,
    DignityMemorialAdapter,
    FrontRunnerAdapter,
    TributeArchiveAdapter,
    GenericHtmlAdapter,
)


class AdapterRegistry:
    """Adapter instances keyed by ``adapter_type``."""

    def __init__(self) -> None:
        self._adapters: dict[str, SourceAdapter] = {}

    def register(self, adapter: SourceAdapter) -> None:
        self._adapters[adapter.adapter_type] = adapter

    def get(self, adapter_type: str, domain: str = "") -> SourceAdapter:
        try:
            return self._adapters[adapter_type]
        except KeyError:
            raise AdapterNotFoundError(adapter_type, domain) from None

    def all(self) -> list[SourceAdapter]:
        return list(self._adapters.values())

    def types(self) -> list[str]:
        return sorted(self._adapters)


def default_registry(fetcher: HttpFetcher, settings: CollectorSettings | None = None) -> AdapterRegistry:
    registry = AdapterRegistry()
    for cls in ADAPTER_CLASSES:
        registry.register(cls(fetcher, settings))
    return registry


__all__ = [
    "ADAPTER_CLASSES",
    "AdapterRegistry",
    "BaseAdapter",
    "ConnectionTest",
    "DignityMemorialAdapter",
    "FrontRunnerAdapter",
    "GenericHtmlAdapter",
    "LegacyComAdapter",
    "RememberingCaAdapter",
    "SourceAdapter",
    "TributeArchiveAdapter",
    "default_registry",
]
