"""
TechShop Numbering — Product Codes and Barcodes
=================================================
Product code:  <HW|SW>-<CAT>-<NNNN>
    HW/SW  product type
    CAT    first three alphanumerics of the category, upper-cased
    NNNN   sequence per (type, category)
    e.g. hardware "Laptops" → HW-LAP-0001

Barcode: EAN-13 = prefix + zero-padded sequence + check digit.
"""

from __future__ import annotations

import threading
from typing import Callable, Dict, Iterable, Set, Tuple

from core.numbering.models import NumberingPolicy
from core.numbering.sequences import SequenceState


TYPE_PREFIXES = {
    "hardware": "HW",
    "software": "SW",
}

EAN13_LENGTH = 13


def category_abbreviation(category: str) -> str:
    letters = "".join(ch for ch in category if ch.isalnum()).upper()
    if not letters:
        raise ValueError("category must contain at least one letter or digit.")
    return letters[:3].ljust(3, "X")


def ean13_check_digit(first_twelve: str) -> int:
    """GS1 check digit: weights 1,3,1,3… from the left over twelve digits."""
    if len(first_twelve) != EAN13_LENGTH - 1 or not first_twelve.isdigit():
        raise ValueError("EAN-13 body must be exactly 12 digits.")
    total = sum(
        int(digit) * (3 if index % 2 else 1)
        for index, digit in enumerate(first_twelve)
    )
    return (10 - total % 10) % 10


def is_valid_ean13(code: str) -> bool:
    if len(code) != EAN13_LENGTH or not code.isdigit():
        return False
    return ean13_check_digit(code[:12]) == int(code[12])


class ProductCodeGenerator:
    """
    Deterministic, collision-resistant product codes.

    One sequence per (type, category) prefix. Codes already present in
    the catalog (checked through `is_taken`) are skipped.
    """

    def __init__(self, *, padding: int = 4):
        self._padding = padding
        self._lock = threading.Lock()
        self._states: Dict[Tuple[str, str], SequenceState] = {}

    def generate(self, product_type: str, category: str, is_taken: Callable[[str], bool]) -> str:
        type_prefix = TYPE_PREFIXES.get(product_type)
        if type_prefix is None:
            raise ValueError(f"Unknown product type '{product_type}'.")
        abbreviation = category_abbreviation(category)
        key = (type_prefix, abbreviation)
        with self._lock:
            state = self._states.get(key)
            if state is None:
                state = SequenceState(
                    NumberingPolicy(
                        name=f"product:{type_prefix}-{abbreviation}",
                        prefix=f"{type_prefix}-{abbreviation}-",
                        padding=self._padding,
                    )
                )
                self._states[key] = state
            return state.next_number(is_taken)


class BarcodeGenerator:
    """Unique EAN-13 barcodes from a numeric prefix and a running sequence."""

    def __init__(self, prefix: str = "200"):
        if not prefix.isdigit() or len(prefix) >= EAN13_LENGTH - 1:
            raise ValueError("barcode prefix must be digits shorter than 12.")
        self._prefix = prefix
        self._lock = threading.Lock()
        self._state = SequenceState(
            NumberingPolicy(
                name="barcode",
                prefix=prefix,
                padding=EAN13_LENGTH - 1 - len(prefix),
            )
        )
        self._issued: Set[str] = set()

    def reserve(self, barcodes: Iterable[str]) -> None:
        with self._lock:
            self._issued.update(barcodes)

    def generate(self, is_taken: Callable[[str], bool] = lambda _b: False) -> str:
        with self._lock:
            while True:
                body = self._state.next_number()
                barcode = f"{body}{ean13_check_digit(body)}"
                if barcode not in self._issued and not is_taken(barcode):
                    self._issued.add(barcode)
                    return barcode
