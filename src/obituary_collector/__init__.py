"""Obituary Collector - multi-source obituary collection and cross-source dedup."""

__version__ = "0.1.0"
