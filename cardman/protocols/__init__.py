"""Cardman protocols."""

from cardman.protocols.store import CardStore

__all__ = ["CardStore"]
