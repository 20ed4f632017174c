"""
TechShop Numbering — Policy Model
===================================
A NumberingPolicy describes how a human-readable number is rendered
from a 1-based sequence position: prefix + zero-padded sequence.

    NumberingPolicy(prefix="QT-", padding=4).format_number(7) == "QT-0007"
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NumberingPolicy:
    """
    Fields:
        name:     Sequence identifier (e.g. "quotation", "invoice").
        prefix:   Prepended before the sequence.
        padding:  Minimum digit width of the sequence.
        start_at: First sequence number issued.
    """
    name: str
    prefix: str = ""
    padding: int = 4
    start_at: int = 1

    def __post_init__(self):
        if not self.name or not isinstance(self.name, str):
            raise ValueError("name must be a non-empty string.")
        if not isinstance(self.prefix, str):
            raise ValueError("prefix must be a string.")
        if not isinstance(self.padding, int) or self.padding < 1:
            raise ValueError("padding must be int >= 1.")
        if not isinstance(self.start_at, int) or self.start_at < 1:
            raise ValueError("start_at must be int >= 1.")

    def format_number(self, sequence: int) -> str:
        if not isinstance(sequence, int) or sequence < 1:
            raise ValueError("sequence must be int >= 1.")
        return f"{self.prefix}{str(sequence).zfill(self.padding)}"
