"""Ordered band lookup tables.

A band table maps a banded form value (a revenue range, a transaction band,
an industry, a tier name) to a rate. Lookups never raise: a value that
matches no band resolves to the lowest-valued band, so bad input
under-bills rather than over-bills. That fallback lives here and only here.

Usage:
    table = BandTable.from_mapping({"<100": 0, "100-300": 100})
    match = table.lookup("100-300")   # BandMatch(label="100-300", value=100.0, matched=True)
    match = table.lookup("bogus")     # BandMatch(label="<100", value=0.0, matched=False)
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

logger = logging.getLogger(__name__)


def normalize_label(value: Any) -> str:
    """Case- and whitespace-insensitive form of a band label."""
    return " ".join(str(value).split()).lower()


def label_matcher(label: Any) -> Callable[[Any], bool]:
    """Build the match predicate for a band label.

    Numeric labels (e.g. bundle hours) match numerically, so 8, 8.0 and "8"
    all select the same band. Everything else matches on normalized text.
    """
    if isinstance(label, (int, float)) and not isinstance(label, bool):
        target = float(label)

        def match_number(value: Any) -> bool:
            try:
                return math.isclose(float(value), target)
            except (TypeError, ValueError):
                return False

        return match_number

    target_text = normalize_label(label)

    def match_text(value: Any) -> bool:
        return normalize_label(value) == target_text

    return match_text


@dataclass(frozen=True)
class Band:
    """One entry: a label, its rate, and the predicate that selects it."""

    label: Any
    value: float
    matches: Callable[[Any], bool]


@dataclass(frozen=True)
class BandMatch:
    """Result of a lookup. matched=False means the fallback band was used."""

    label: Any
    value: float
    matched: bool


class BandTable:
    """Ordered bands with a guaranteed lowest-cost fallback."""

    def __init__(self, bands: Iterable[Band], empty_value: float = 0.0):
        self.bands = tuple(bands)
        if self.bands:
            self.fallback = min(self.bands, key=lambda band: band.value)
        else:
            self.fallback = Band(label=None, value=float(empty_value), matches=lambda _: False)

    @classmethod
    def from_mapping(cls, mapping: Mapping[Any, float], empty_value: float = 0.0) -> "BandTable":
        """Build a table from an ordered {label: value} mapping.

        Args:
            mapping: Band label -> rate, in display order
            empty_value: Value returned when the mapping has no bands at all
                         (use 1.0 for multiplier tables)
        """
        return cls(
            (Band(label=label, value=float(value), matches=label_matcher(label))
             for label, value in mapping.items()),
            empty_value=empty_value,
        )

    def lookup(self, key: Any) -> BandMatch:
        """Resolve a key to its band, or to the lowest-cost band."""
        if key is not None:
            for band in self.bands:
                if band.matches(key):
                    return BandMatch(label=band.label, value=band.value, matched=True)
            logger.debug(f"band lookup: {key!r} unmatched, using {self.fallback.label!r}")
        return BandMatch(label=self.fallback.label, value=self.fallback.value, matched=False)

    def labels(self) -> list:
        """Band labels in table order."""
        return [band.label for band in self.bands]
