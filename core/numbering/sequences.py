"""
TechShop Numbering — Sequences
================================
Thread-safe sequence counters behind every generated identifier.

DocumentNumberer issues QT-0001 / INV-0001 style numbers. A numberer
can be told about numbers already in use (fixtures) so it never hands
out a colliding value.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable, Optional, Set

from core.numbering.models import NumberingPolicy

logger = logging.getLogger("techshop.numbering")


class SequenceState:
    """
    Current counter for one policy.

    next_number() returns the formatted number and advances. Numbers
    for which `is_taken` answers True are skipped.
    """

    def __init__(self, policy: NumberingPolicy, *, current_sequence: Optional[int] = None):
        self._policy = policy
        self._current = current_sequence if current_sequence is not None else policy.start_at

    @property
    def policy(self) -> NumberingPolicy:
        return self._policy

    @property
    def current_sequence(self) -> int:
        return self._current

    def next_number(self, is_taken: Callable[[str], bool] = lambda _n: False) -> str:
        while True:
            number = self._policy.format_number(self._current)
            self._current += 1
            if not is_taken(number):
                return number


class DocumentNumberer:
    """Lock-guarded document number generator for one policy."""

    def __init__(self, policy: NumberingPolicy):
        self._lock = threading.Lock()
        self._state = SequenceState(policy)
        self._issued: Set[str] = set()

    @property
    def policy(self) -> NumberingPolicy:
        return self._state.policy

    def reserve(self, numbers: Iterable[str]) -> None:
        """Mark numbers as already in use (e.g. loaded from fixtures)."""
        with self._lock:
            self._issued.update(numbers)

    def next_number(self) -> str:
        with self._lock:
            number = self._state.next_number(self._issued.__contains__)
            self._issued.add(number)
        logger.debug(f"Issued {self.policy.name} number {number}")
        return number
