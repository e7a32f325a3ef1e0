"""
Tenor and payment frequency conventions.

Curve times are year fractions. Tenors convert as:
- D: days / 365
- W: 7 * weeks / 365
- M: months / 12
- Y: years
"""

import re
from enum import Enum
from typing import Tuple


class Frequency(Enum):
    """Payments per year."""
    ANNUAL = 1
    SEMI_ANNUAL = 2
    QUARTERLY = 4
    MONTHLY = 12

    @classmethod
    def from_string(cls, s: str) -> "Frequency":
        """Parse frequency from string representation."""
        mapping = {
            "ANNUAL": cls.ANNUAL,
            "1": cls.ANNUAL,
            "SEMI": cls.SEMI_ANNUAL,
            "SEMIANNUAL": cls.SEMI_ANNUAL,
            "SEMI_ANNUAL": cls.SEMI_ANNUAL,
            "2": cls.SEMI_ANNUAL,
            "QUARTERLY": cls.QUARTERLY,
            "4": cls.QUARTERLY,
            "MONTHLY": cls.MONTHLY,
            "12": cls.MONTHLY,
        }
        key = str(s).upper().replace(" ", "").replace("-", "")
        if key in mapping:
            return mapping[key]
        raise ValueError(f"Unknown payment frequency: {s}")

    @property
    def period(self) -> float:
        """Length of one payment period in years."""
        return 1.0 / self.value


# Tenor units and how many of each make a year
UNITS_PER_YEAR = {"D": 365.0, "W": 365.0 / 7, "M": 12.0, "Y": 1.0}

_TENOR = re.compile(r"(?P<amount>\d+)(?P<unit>[DWMY])")


def parse_tenor(tenor: str) -> Tuple[int, str]:
    """
    Split a tenor such as "3M" into (3, "M").

    Raises:
        ValueError: If tenor is not a whole count followed by D, W, M or Y
    """
    found = _TENOR.fullmatch(tenor.strip().upper())
    if found is None:
        raise ValueError(f"Tenor {tenor!r} is not a count followed by D, W, M or Y")

    return int(found["amount"]), found["unit"]


def tenor_to_years(tenor: str) -> float:
    """Year fraction of a tenor string, ACT/365 for days and weeks."""
    amount, unit = parse_tenor(tenor)

    return amount / UNITS_PER_YEAR[unit]


__all__ = [
    "Frequency",
    "parse_tenor",
    "tenor_to_years",
]
