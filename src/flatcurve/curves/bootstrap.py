"""
Curve bootstrapping engine.

Implements sequential bootstrap of a piecewise-flat forward curve:
1. Sort instruments by maturity
2. For each instrument solve for the flat forward rate on the segment
   from the last knot to its maturity that reprices it exactly
3. Verify repricing of every instrument on the finished curve

The single step (next_knot) splits an instrument's cash flows at the last
known knot. Flows up to that knot are valued on the existing curve:

    p = pv0 + D0 * sum(c * exp(-integral of f from u0 to u))

where (pv0, D0) is the present value of the known flows and the discount
factor to the last of them at u0. Only the remaining flows depend on the
new segment, which is solved for with the secant method.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from ..iterable import Enumerator, array, back, until
from ..root1d import (
    DegenerateSlopeError,
    NonConvergenceError,
    Secant,
    Tolerance,
)
from .instruments import CurveInstrument, instrument_from_quote
from .pwflat import InvalidKnotOrderingError, PWFlatCurve

logger = logging.getLogger(__name__)

# First guess for the first segment of an empty curve
DEFAULT_GUESS = 0.01
# Offset of the second secant point from the first
DEFAULT_BUMP = 1e-4
# Solver tolerance on the price-normalized objective
DEFAULT_SOLVER_TOLERANCE = Tolerance(rel_tol=1e-12, abs_tol=1e-15, max_iterations=100)


class BootstrapError(RuntimeError):
    """Raised when the next knot for an instrument cannot be solved."""

    def __init__(self, message: str, label: Optional[str] = None, maturity: float = math.nan):
        super().__init__(message)
        self.label = label
        self.maturity = maturity


def next_knot(
    curve: PWFlatCurve,
    u: Enumerator[float],
    c: Enumerator[float],
    price: float,
    guess: Optional[float] = None,
    bump: float = DEFAULT_BUMP,
    tolerance: Optional[Tolerance] = None,
    label: Optional[str] = None,
) -> Tuple[float, float]:
    """
    Next (time, rate) knot that reprices an instrument on curve.

    The new knot sits at the last payment time and holds the flat forward
    rate from the curve's last knot (0 for an empty curve) to there.
    curve, u and c are left unchanged.

    Args:
        curve: Curve built so far
        u: Payment times of the instrument, increasing
        c: Amounts paid at the matching times
        price: Market price at time 0
        guess: First secant point, defaults to the last knot value
        bump: Offset of the second secant point
        tolerance: Solver tolerance on the objective scaled by price
        label: Instrument name used in error messages

    Returns:
        Tuple of (time, rate) for the new knot

    Raises:
        InvalidKnotOrderingError: If no payment falls after the last knot
        BootstrapError: If the solver fails
    """
    if not price > 0:
        raise ValueError(f"Price must be positive, got {price}")
    tolerance = tolerance if tolerance is not None else DEFAULT_SOLVER_TOLERANCE

    last = curve.last_knot()
    t_last, x_last = last if last is not None else (0.0, None)

    # Value the flows the existing knots already determine
    f = curve.copy()
    known = until(u, lambda s: s > t_last)
    amounts = c.copy()
    pv0, D0 = f.present_valuate(known, amounts)
    remaining = known.inner

    u0 = 0.0
    last_known = back(until(u, lambda s: s > t_last))
    if last_known.has_current():
        u0 = max(u0, float(last_known.current()))

    final = back(remaining)
    if not final.has_current():
        raise InvalidKnotOrderingError(
            f"{label or 'Instrument'} has no cash flow after last knot at {t_last}"
        )
    maturity = float(final.current())

    def objective(x: float) -> float:
        trial = f.extended(maturity, x)
        pv, _ = trial.present_value(remaining, amounts, u0)
        return (pv0 + D0 * pv) / price - 1.0

    x0 = guess if guess is not None else (float(x_last) if x_last is not None else DEFAULT_GUESS)

    try:
        x, y = Secant(objective, x0, x0 + bump, tolerance).solve()
    except (NonConvergenceError, DegenerateSlopeError) as e:
        logger.warning("Bootstrap failed for %s at t=%s: %s", label, maturity, e)
        raise BootstrapError(
            f"Bootstrap failed at {label or 'instrument'} (t={maturity}): {e}",
            label=label,
            maturity=maturity,
        ) from e

    logger.debug("Bootstrapped %s: t=%s x=%s residual=%s", label, maturity, x, y)

    return (maturity, x)


@dataclass
class BootstrapResult:
    """
    Result of curve bootstrap.

    Attributes:
        curve: Bootstrapped curve (knots up to the last instrument solved)
        knots: List of (tenor, time, rate) in bootstrap order
        repricing_errors: {tenor: model price - market price}
        success: Whether every instrument was solved and repriced
        message: Status or failure description
    """
    curve: PWFlatCurve
    knots: List[Tuple[str, float, float]]
    repricing_errors: Dict[str, float]
    success: bool
    message: str

    def to_frame(self) -> pd.DataFrame:
        """
        Tabulate the knots.

        Returns:
            DataFrame with columns [tenor, time, forward, spot, discount,
            repricing_error]
        """
        rows = []
        for tenor, time, rate in self.knots:
            rows.append({
                "tenor": tenor,
                "time": time,
                "forward": rate,
                "spot": self.curve.spot(time),
                "discount": self.curve.discount(time),
                "repricing_error": self.repricing_errors.get(tenor, np.nan),
            })

        return pd.DataFrame(
            rows,
            columns=["tenor", "time", "forward", "spot", "discount", "repricing_error"],
        )


class CurveBootstrapper:
    """
    Bootstrap a piecewise-flat forward curve from instruments.

    The bootstrapper:
    1. Sorts instruments by maturity
    2. Solves for one flat segment per instrument with next_knot
    3. Verifies that instruments reprice within tolerance

    Attributes:
        tolerance: Maximum allowed repricing error (default 1e-10)
        solver_tolerance: Secant settings passed to next_knot
        extrapolation: Forward rate of the result curve past its last knot
        bump: Offset of the second secant point
    """

    def __init__(
        self,
        tolerance: float = 1e-10,
        solver_tolerance: Optional[Tolerance] = None,
        extrapolation: float = math.nan,
        bump: float = DEFAULT_BUMP,
    ):
        self.tolerance = tolerance
        self.solver_tolerance = solver_tolerance
        self.extrapolation = extrapolation
        self.bump = bump

    def bootstrap(
        self,
        instruments: List[CurveInstrument],
        verify: bool = True
    ) -> BootstrapResult:
        """
        Bootstrap curve from instruments.

        Args:
            instruments: Curve instruments with quotes
            verify: Whether to verify repricing after bootstrap

        Returns:
            BootstrapResult with curve and diagnostics
        """
        curve = PWFlatCurve.from_arrays([], [], self.extrapolation)

        if not instruments:
            return BootstrapResult(
                curve=curve,
                knots=[],
                repricing_errors={},
                success=False,
                message="No instruments provided"
            )

        sorted_instruments = sorted(instruments, key=lambda inst: inst.maturity_time())

        knots: List[Tuple[str, float, float]] = []
        times: List[float] = []
        rates: List[float] = []

        for inst in sorted_instruments:
            u, c = inst.cash_flows()
            try:
                t, x = next_knot(
                    curve,
                    array(u),
                    array(c),
                    inst.price,
                    bump=self.bump,
                    tolerance=self.solver_tolerance,
                    label=inst.tenor,
                )
            except (BootstrapError, ValueError) as e:
                return BootstrapResult(
                    curve=curve,
                    knots=knots,
                    repricing_errors={},
                    success=False,
                    message=f"Bootstrap failed at {inst.tenor}: {e}"
                )

            times.append(t)
            rates.append(x)
            knots.append((inst.tenor, t, x))
            curve = PWFlatCurve.from_arrays(times, rates, self.extrapolation)

        repricing_errors = {}
        if verify:
            repricing_errors = self._verify_repricing(curve, sorted_instruments)

            max_error = max(abs(e) for e in repricing_errors.values())
            if not max_error <= self.tolerance:
                return BootstrapResult(
                    curve=curve,
                    knots=knots,
                    repricing_errors=repricing_errors,
                    success=False,
                    message=f"Repricing error {max_error:.2e} exceeds tolerance {self.tolerance:.2e}"
                )

        return BootstrapResult(
            curve=curve,
            knots=knots,
            repricing_errors=repricing_errors,
            success=True,
            message="Bootstrap successful"
        )

    def _verify_repricing(
        self,
        curve: PWFlatCurve,
        instruments: List[CurveInstrument]
    ) -> Dict[str, float]:
        """
        Verify that instruments reprice to their quotes.

        Returns dict of {tenor: error} where error = computed - market price.
        """
        errors = {}

        for inst in instruments:
            u, c = inst.cash_flows()
            pv, _ = curve.present_value(array(u), array(c))
            errors[inst.tenor] = pv - inst.price

        return errors


def bootstrap_from_quotes(
    quotes: List[Dict],
    extrapolation: float = math.nan,
) -> PWFlatCurve:
    """
    Convenience function to bootstrap a curve from quote dictionaries.

    Args:
        quotes: List of dicts with keys: instrument_type, tenor, quote, ...
        extrapolation: Forward rate past the last knot

    Returns:
        Bootstrapped curve

    Raises:
        RuntimeError: If the bootstrap fails
    """
    instruments = [instrument_from_quote(q) for q in quotes]

    bootstrapper = CurveBootstrapper(extrapolation=extrapolation)
    result = bootstrapper.bootstrap(instruments)

    if not result.success:
        raise RuntimeError(f"Bootstrap failed: {result.message}")

    return result.curve


__all__ = [
    "BootstrapError",
    "BootstrapResult",
    "CurveBootstrapper",
    "bootstrap_from_quotes",
    "next_knot",
]
