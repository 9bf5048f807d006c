"""Finguard: pre-purchase spending guard and month-to-date insights service."""

from finguard.version import __version__

__all__ = ["__version__"]
