from __future__ import annotations

from dataclasses import dataclass


class CollectorError(Exception):
    """Base class for collector errors."""


class AdapterNotFoundError(CollectorError):
    """No adapter is registered for a source's adapter type."""

    def __init__(self, adapter_type: str, domain: str = "") -> None:
        self.adapter_type = adapter_type
        self.domain = domain
        msg = f'No adapter registered for type "{adapter_type}"'
        if domain:
            msg += f" (source: {domain})"
        super().__init__(msg)


class SourceNotFoundError(CollectorError):
    """A source id or domain is not in the registry."""


@dataclass
class PersistenceError(CollectorError):
    """Raised when a write to the obituary store fails.

    Carries enough context for the run's error report; the collector counts it
    as a failed insert and moves on.
    """

    operation: str
    detail: str
    obituary_id: int | None = None

    def __str__(self) -> str:
        base = f"{self.operation} failed: {self.detail}"
        if self.obituary_id is not None:
            base += f" (obituary {self.obituary_id})"
        return base
