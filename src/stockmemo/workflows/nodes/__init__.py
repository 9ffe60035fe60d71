"""Convenience re-exports for workflow nodes."""
from __future__ import annotations

from . import (
    data_load,
    merge,
    narrative,
    structure,
    symbol,
    writing,
)

__all__ = [
    "data_load",
    "merge",
    "narrative",
    "structure",
    "symbol",
    "writing",
]
