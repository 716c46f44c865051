"""Rupee amounts: parsing display labels and formatting for output."""

from __future__ import annotations

import math
import re

from cricauction.config.rules import CRORE, LAKH


_STRIP_PATTERN = re.compile(r"[₹,\s]")


def _to_rupees(value: float, label: str | int | float) -> int:
    if not math.isfinite(value):
        raise ValueError(f"Price is not a finite amount: {label!r}")
    return int(round(value))


def parse_price_label(label: str | int | float) -> int:
    """Convert a price such as ``"₹15Cr"``, ``"₹80L"`` or ``"2500000"`` to rupees.

    A ``Cr`` suffix multiplies by one crore, an ``L`` suffix by one lakh, and
    anything else is read as a plain number. Infinite or NaN amounts raise
    ``ValueError``.
    """

    if isinstance(label, int):
        return label
    if isinstance(label, float):
        return _to_rupees(label, label)

    text = _STRIP_PATTERN.sub("", label)
    multiplier = 1
    lowered = text.lower()
    if lowered.endswith("cr"):
        multiplier = CRORE
        text = text[:-2]
    elif lowered.endswith("l"):
        multiplier = LAKH
        text = text[:-1]

    try:
        value = float(text)
    except ValueError as exc:
        raise ValueError(f"Unrecognized price label: {label!r}") from exc
    return _to_rupees(value * multiplier, label)


def format_price(amount: int) -> str:
    if amount >= CRORE:
        return f"₹{amount / CRORE:.1f}Cr"
    if amount >= LAKH:
        return f"₹{amount / LAKH:.1f}L"
    return f"₹{amount:,}"
