"""
Piecewise-flat forward curve.

The forward function of a curve with knots (t[i], x[i]) is

    f(t) = x[i]  for  t[i-1] < t <= t[i]

a right-continuous step function where each flat rate applies backward
from its knot (t[-1] is taken as -infinity). Past the last knot the curve
uses its extrapolation value, which defaults to NaN so that extrapolating
shows up in results instead of being silently filled in.

Queries come in two forms:
- advancing (valuate, integrate, present_valuate) consume knots as they
  pass them, so a curve queried at increasing times is walked only once
- probing (value, integral, discount, spot, present_value) run the
  advancing form on a copy and leave the curve unchanged
"""

import math
from typing import Optional, Tuple

import numpy as np

from ..iterable import (
    BufferView,
    Enumerator,
    Sequence,
    array,
    back,
    chain,
    length,
    pair,
)


class InvalidKnotOrderingError(ValueError):
    """Raised when knot times are not finite and strictly increasing."""


class PWFlatCurve(Enumerator[Tuple[float, float]]):
    """
    Piecewise-flat forward curve over a pair of knot enumerators.

    The curve is itself an enumerator over its remaining (time, value)
    knots. Copies share knot storage but not cursor state.

    Attributes:
        extrapolation: Forward rate used past the last knot (NaN = undefined)

    Conventions:
        - Times are year fractions, rates are continuously compounded
        - The boundary t == t[i] belongs to segment i
    """

    def __init__(
        self,
        t: Enumerator[float],
        x: Enumerator[float],
        extrapolation: float = math.nan,
        validate: bool = True,
    ):
        self._t = t.copy()
        self._x = x.copy()
        self.extrapolation = extrapolation
        if validate:
            _validate_knots(self._t, self._x)

    @classmethod
    def from_arrays(
        cls,
        times,
        values,
        extrapolation: float = math.nan,
    ) -> "PWFlatCurve":
        """
        Build a curve viewing two numeric buffers.

        Args:
            times: Knot times, strictly increasing
            values: Flat forward rate ending at each knot
            extrapolation: Rate past the last knot

        Returns:
            Curve whose knot enumerators are views of the buffers
        """
        times = np.asarray(times, dtype=float)
        values = np.asarray(values, dtype=float)
        if times.shape != values.shape:
            raise ValueError(
                f"Times and values must have same length, got {times.shape} and {values.shape}"
            )
        return cls(BufferView(times), BufferView(values), extrapolation)

    @classmethod
    def flat(cls, rate: float) -> "PWFlatCurve":
        """Curve with no knots, flat at rate everywhere."""
        return cls(array([]), array([]), extrapolation=rate)

    # Enumerator interface

    def has_current(self) -> bool:
        return self._t.has_current() and self._x.has_current()

    def current(self) -> Tuple[float, float]:
        self._require()
        return (self._t.current(), self._x.current())

    def advance(self) -> "PWFlatCurve":
        if self.has_current():
            self._t.advance()
            self._x.advance()
        return self

    def copy(self) -> "PWFlatCurve":
        return PWFlatCurve(self._t, self._x, self.extrapolation, validate=False)

    def is_infinite(self) -> bool:
        return self._t.is_infinite() and self._x.is_infinite()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PWFlatCurve):
            return NotImplemented
        same_extrapolation = (
            (math.isnan(self.extrapolation) and math.isnan(other.extrapolation))
            or self.extrapolation == other.extrapolation
        )
        return same_extrapolation and self._t == other._t and self._x == other._x

    __hash__ = None

    # Advancing queries

    def valuate(self, t: float) -> Tuple[float, float]:
        """
        First knot with time >= t, discarding the knots before it.

        Not idempotent: every knot passed is consumed. Use value() for
        repeated queries.

        Returns:
            (time, value) of the knot, or (NaN, extrapolation) if the
            knots run out first
        """
        while self._t.has_current() and self._x.has_current():
            time = self._t.current()
            if time >= t:
                return (time, self._x.current())
            self._t.advance()
            self._x.advance()

        return (math.nan, self.extrapolation)

    def integrate(self, t: float, t0: float = 0.0) -> float:
        """
        Integral of the forward curve from t0 to t, consuming knots.

        Knots at or before t are consumed; the first knot past t is kept,
        so calls over contiguous intervals can be chained on the same
        curve. Past the last knot the extrapolation value is integrated
        (NaN unless one was supplied).

        Args:
            t: Upper limit
            t0: Lower limit

        Returns:
            Integral value, 0.0 when t <= t0
        """
        if t <= t0:
            return 0.0

        total = 0.0
        while self._t.has_current() and self._x.has_current():
            time = self._t.current()
            if time > t:
                total += self._x.current() * (t - t0)
                return total
            if time > t0:
                total += self._x.current() * (time - t0)
                t0 = time
            self._t.advance()
            self._x.advance()

        if t > t0:
            total += self.extrapolation * (t - t0)

        return total

    def present_valuate(
        self,
        u: Enumerator[float],
        c: Enumerator[float],
        t0: float = 0.0,
    ) -> Tuple[float, float]:
        """
        Present value of cash flows, consuming curve knots and cash flows.

        Cash flows paid before t0 are skipped. Amounts are discounted to t0.

        Args:
            u: Payment times, increasing
            c: Amounts paid at the matching times
            t0: Valuation time

        Returns:
            (pv, D) where D is the discount factor from t0 to the last
            processed payment
        """
        pv = 0.0
        D = 1.0

        while u.has_current() and c.has_current():
            time = u.current()
            if time >= t0:
                D *= np.exp(-self.integrate(time, t0))
                pv += c.current() * D
                t0 = time
            u.advance()
            c.advance()

        return (float(pv), float(D))

    # Probing queries

    def value(self, t: float) -> Tuple[float, float]:
        """valuate() on a copy: (time, value) of the first knot with time >= t."""
        return self.copy().valuate(t)

    def forward(self, t: float) -> float:
        """Instantaneous forward rate f(t)."""
        return self.value(t)[1]

    def integral(self, t: float, t0: float = 0.0) -> float:
        """integrate() on a copy."""
        return self.copy().integrate(t, t0)

    def discount(self, t: float, t0: float = 0.0) -> float:
        """Discount factor exp(-integral(t, t0))."""
        return float(np.exp(-self.integral(t, t0)))

    def spot(self, t: float) -> float:
        """
        Continuously compounded zero rate r(t), with t r(t) = integral(t).

        Before the first knot this is the first knot's value.
        """
        if not self.has_current():
            return self.extrapolation
        time, value = self.current()

        return value if t <= time else self.integral(t) / t

    def present_value(
        self,
        u: Enumerator[float],
        c: Enumerator[float],
        t0: float = 0.0,
    ) -> Tuple[float, float]:
        """present_valuate() on copies of the curve and the cash flows."""
        return self.copy().present_valuate(u.copy(), c.copy(), t0)

    # Construction helpers

    def last_knot(self) -> Optional[Tuple[float, float]]:
        """(time, value) of the last remaining knot, None if there are none."""
        if self.is_infinite():
            raise ValueError("Infinite curve has no last knot")
        last = back(self)

        return last.current() if last.has_current() else None

    def extended(self, time: float, value: float) -> "PWFlatCurve":
        """
        New curve with one more knot after the remaining knots.

        Knot storage of this curve is shared, not copied.

        Raises:
            InvalidKnotOrderingError: If time does not exceed the last knot time
        """
        last = self.last_knot()
        if not math.isfinite(time) or (last is not None and time <= last[0]):
            raise InvalidKnotOrderingError(
                f"New knot time {time} must be finite and after last knot {last}"
            )

        return PWFlatCurve(
            chain(self._t, array([time])),
            chain(self._x, array([value])),
            self.extrapolation,
            validate=False,
        )

    def knots(self) -> Tuple[np.ndarray, np.ndarray]:
        """Arrays of the remaining knot times and values."""
        if self.is_infinite():
            raise ValueError("Cannot materialize an infinite curve")
        items = list(self)
        times = np.array([k[0] for k in items], dtype=float)
        values = np.array([k[1] for k in items], dtype=float)

        return times, values

    def __repr__(self) -> str:
        n = "inf" if self.is_infinite() else length(self)
        return f"PWFlatCurve(knots={n}, extrapolation={self.extrapolation})"


def _validate_knots(t: Enumerator[float], x: Enumerator[float]) -> None:
    """Check knot times are finite and strictly increasing."""
    if t.is_infinite() and x.is_infinite():
        # Only an arithmetic progression can be checked without walking it
        if isinstance(t, Sequence):
            if not (math.isfinite(t.current()) and t.dt > 0):
                raise InvalidKnotOrderingError(
                    f"Knot times {t!r} are not strictly increasing"
                )
        return

    if not t.is_infinite() and not x.is_infinite() and length(t) != length(x):
        raise ValueError(
            f"Knot times and values differ in length: {length(t)} != {length(x)}"
        )

    previous = -math.inf
    for i, (time, _) in enumerate(pair(t, x)):
        if not math.isfinite(time) or time <= previous:
            raise InvalidKnotOrderingError(
                f"Knot {i} at time {time} does not follow {previous}"
            )
        previous = time


__all__ = [
    "PWFlatCurve",
    "InvalidKnotOrderingError",
]
