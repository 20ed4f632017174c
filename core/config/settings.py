"""
TechShop Core Config — Shop Settings
======================================
Shop-level knobs read once at process start and handed to the engines.

Defaults mirror the back-office settings screen (18% default tax, low
stock at 5 units, quotations valid for 15 days). Any field can be
overridden from TECHSHOP_* environment variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional


ENV_PREFIX = "TECHSHOP_"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


# ══════════════════════════════════════════════════════════════
# SETTINGS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ShopSettings:
    """
    Fields:
        default_tax_percent:      Tax applied to new products that omit one.
        low_stock_threshold:      Quantity at or below which stock is "low".
        quotation_validity_days:  Default validity window for quotations.
        allow_negative_stock:     Permit decrements below zero (legacy).
        strict_stage_order:       Deliveries may only move forward (or return).
        quotation_prefix:         Prefix of quotation numbers (QT-0001).
        invoice_prefix:           Prefix of invoice numbers (INV-0001).
        document_number_padding:  Digit width of document sequences.
        barcode_prefix:           Leading digits of generated EAN-13 codes.
        log_level:                Level used by configure_logging().
    """

    default_tax_percent: float = 18.0
    low_stock_threshold: int = 5
    quotation_validity_days: int = 15
    allow_negative_stock: bool = False
    strict_stage_order: bool = True
    quotation_prefix: str = "QT-"
    invoice_prefix: str = "INV-"
    document_number_padding: int = 4
    barcode_prefix: str = "200"
    log_level: str = "INFO"

    def __post_init__(self):
        if not 0 <= self.default_tax_percent <= 100:
            raise ValueError(
                f"default_tax_percent must be between 0 and 100, "
                f"got {self.default_tax_percent}."
            )
        if self.low_stock_threshold < 0:
            raise ValueError("low_stock_threshold must be >= 0.")
        if self.quotation_validity_days < 1:
            raise ValueError("quotation_validity_days must be >= 1.")
        if not self.quotation_prefix or not self.invoice_prefix:
            raise ValueError("Document number prefixes must be non-empty.")
        if self.quotation_prefix == self.invoice_prefix:
            raise ValueError("Quotation and invoice prefixes must differ.")
        if self.document_number_padding < 1:
            raise ValueError("document_number_padding must be >= 1.")
        if not self.barcode_prefix.isdigit() or not 2 <= len(self.barcode_prefix) <= 6:
            raise ValueError("barcode_prefix must be 2-6 digits.")
        if logging.getLevelName(self.log_level.upper()) not in (
            logging.DEBUG, logging.INFO, logging.WARNING,
            logging.ERROR, logging.CRITICAL,
        ):
            raise ValueError(f"Unknown log_level '{self.log_level}'.")

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


# ══════════════════════════════════════════════════════════════
# ENVIRONMENT LOADING
# ══════════════════════════════════════════════════════════════

def _coerce(name: str, raw: str, target_type: Any) -> Any:
    value = raw.strip()
    try:
        if target_type in (bool, "bool"):
            lowered = value.lower()
            if lowered in _TRUE_VALUES:
                return True
            if lowered in _FALSE_VALUES:
                return False
            raise ValueError(value)
        if target_type in (int, "int"):
            return int(value)
        if target_type in (float, "float"):
            return float(value)
    except ValueError as exc:
        raise ValueError(
            f"{ENV_PREFIX}{name.upper()}={raw!r} is not a valid {target_type}."
        ) from exc
    return value


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> ShopSettings:
    """
    Build ShopSettings from defaults, then TECHSHOP_* variables, then
    explicit keyword overrides (highest precedence).
    """
    environ = os.environ if environ is None else environ
    values: Dict[str, Any] = {}
    for f in fields(ShopSettings):
        raw = environ.get(f"{ENV_PREFIX}{f.name.upper()}")
        if raw is not None:
            values[f.name] = _coerce(f.name, raw, f.type)
    values.update(overrides)
    return ShopSettings(**values)
