"""Cardman models."""

from cardman.models.client import Client
from cardman.models.visit import Visit

__all__ = [
    "Client",
    "Visit",
]
