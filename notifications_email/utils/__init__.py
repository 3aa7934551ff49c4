"""Utility helpers."""

from .addresses import InvalidAddressError, normalize_address
from .concurrency import run_concurrently

__all__ = ["InvalidAddressError", "normalize_address", "run_concurrently"]
