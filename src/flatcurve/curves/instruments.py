"""
Curve instruments for bootstrapping.

Defines the instruments a piecewise-flat curve is built from:
- ZeroCouponBond: single payment at maturity, quoted by price
- Deposit: simple-interest deposit, quoted by rate
- FixedRateBond: coupon bond, quoted by price
- ParSwap: single-curve par swap, quoted by fixed rate

Each instrument knows how to:
1. Report its maturity in years
2. Produce its cash flows as (payment times, amounts) arrays
3. Report the market price those cash flows must reprice to
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np

from ..conventions import Frequency, tenor_to_years


def payment_times(maturity: float, frequency: Frequency) -> np.ndarray:
    """
    Regular payment times ending at maturity, rolling backward.

    A short first period is left at the front when maturity is not a
    whole number of periods.
    """
    if maturity <= 0:
        raise ValueError(f"Maturity must be positive, got {maturity}")
    period = frequency.period
    n = int(np.ceil(maturity / period - 1e-9))

    return maturity - period * np.arange(n)[::-1]


@dataclass
class CurveInstrument(ABC):
    """
    Abstract base for curve construction instruments.

    Attributes:
        tenor: Instrument tenor (e.g., "3M", "2Y"), also used as its label
        quote: Market quote (price or rate in decimal, by instrument)
    """
    tenor: str
    quote: float

    def maturity_time(self) -> float:
        """Time to maturity in years."""
        return tenor_to_years(self.tenor)

    @property
    @abstractmethod
    def price(self) -> float:
        """Market price the cash flows must reprice to."""
        pass

    @abstractmethod
    def cash_flows(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Cash flows of the instrument.

        Returns:
            Tuple of (payment times, amounts), times increasing
        """
        pass


@dataclass
class ZeroCouponBond(CurveInstrument):
    """
    Zero coupon bond quoted by price per unit notional.

    Pricing: P = exp(-integral of f from 0 to T)
    """
    notional: float = 1.0

    @property
    def price(self) -> float:
        return self.quote * self.notional

    def cash_flows(self) -> Tuple[np.ndarray, np.ndarray]:
        return np.array([self.maturity_time()]), np.array([self.notional])


@dataclass
class Deposit(CurveInstrument):
    """
    Money market deposit.

    The depositor pays 1 today and receives (1 + R*tau) at maturity.
    """

    @property
    def price(self) -> float:
        return 1.0

    def cash_flows(self) -> Tuple[np.ndarray, np.ndarray]:
        tau = self.maturity_time()
        return np.array([tau]), np.array([1.0 + self.quote * tau])


@dataclass
class FixedRateBond(CurveInstrument):
    """
    Fixed coupon bond quoted by (dirty) price per unit notional.

    Pays coupon * accrual on each payment date and the notional at maturity.
    """
    coupon: float = 0.0
    frequency: Frequency = Frequency.ANNUAL
    notional: float = 1.0

    @property
    def price(self) -> float:
        return self.quote * self.notional

    def cash_flows(self) -> Tuple[np.ndarray, np.ndarray]:
        times = payment_times(self.maturity_time(), self.frequency)
        accruals = np.diff(times, prepend=0.0)
        amounts = self.coupon * accruals
        amounts[-1] += 1.0

        return times, amounts * self.notional


@dataclass
class ParSwap(CurveInstrument):
    """
    Single-curve par swap quoted by its fixed rate.

    With the same curve for discounting and projection the floating leg is
    worth par, so the swap reprices when its fixed leg plus notional is
    worth 1: sum(R * delta_i * DF(T_i)) + DF(T_n) = 1.
    """
    frequency: Frequency = Frequency.ANNUAL

    @property
    def price(self) -> float:
        return 1.0

    def cash_flows(self) -> Tuple[np.ndarray, np.ndarray]:
        times = payment_times(self.maturity_time(), self.frequency)
        amounts = self.quote * np.diff(times, prepend=0.0)
        amounts[-1] += 1.0

        return times, amounts


def instrument_from_quote(q: Dict) -> CurveInstrument:
    """
    Build an instrument from a quote dictionary.

    Example quote format:
        {"instrument_type": "DEPOSIT", "tenor": "3M", "quote": 0.053}
        {"instrument_type": "ZERO", "tenor": "1Y", "quote": 0.951}
        {"instrument_type": "BOND", "tenor": "5Y", "quote": 1.01, "coupon": 0.045}
        {"instrument_type": "SWAP", "tenor": "10Y", "quote": 0.042, "frequency": "SEMI"}
    """
    inst_type = q.get("instrument_type", "").upper()
    tenor = q.get("tenor", "")
    quote = float(q.get("quote", 0))
    frequency = Frequency.from_string(q.get("frequency", "ANNUAL"))

    if inst_type == "DEPOSIT":
        return Deposit(tenor=tenor, quote=quote)
    elif inst_type in ("ZERO", "ZCB"):
        return ZeroCouponBond(tenor=tenor, quote=quote, notional=float(q.get("notional", 1.0)))
    elif inst_type == "BOND":
        return FixedRateBond(
            tenor=tenor,
            quote=quote,
            coupon=float(q.get("coupon", 0.0)),
            frequency=frequency,
            notional=float(q.get("notional", 1.0)),
        )
    elif inst_type in ("SWAP", "OIS"):
        return ParSwap(tenor=tenor, quote=quote, frequency=frequency)
    else:
        raise ValueError(f"Unknown instrument type: {inst_type}")


__all__ = [
    "CurveInstrument",
    "ZeroCouponBond",
    "Deposit",
    "FixedRateBond",
    "ParSwap",
    "instrument_from_quote",
    "payment_times",
]
