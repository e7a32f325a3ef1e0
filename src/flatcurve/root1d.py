"""One dimensional root finding with a damped secant iteration."""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np

from .iterable import Enumerator

logger = logging.getLogger(__name__)

Func = Callable[[float], float]

EPSILON = float(np.finfo(float).eps)
TINY = float(np.finfo(float).tiny)


class DegenerateSlopeError(ZeroDivisionError):
    """Raised when a secant slope would divide by (nearly) zero."""


class NonConvergenceError(RuntimeError):
    """Raised when the secant iteration fails to meet its tolerance."""

    def __init__(self, message: str, x: float = math.nan, y: float = math.nan, iterations: int = 0):
        super().__init__(message)
        self.x = x
        self.y = y
        self.iterations = iterations


@dataclass(frozen=True)
class Tolerance:
    """
    Convergence settings for the secant solver.

    Attributes:
        rel_tol: Relative tolerance, scaled by max(1, |a| + |b|)
        abs_tol: Absolute tolerance floor
        max_iterations: Steps allowed before giving up
    """
    rel_tol: float = 8 * EPSILON
    abs_tol: float = TINY
    max_iterations: int = 100


@dataclass
class RootResult:
    root: float
    value: float
    iterations: int
    converged: bool
    method: str


def nearly_equal(a: float, b: float, rel_tol: float = 8 * EPSILON, abs_tol: float = TINY) -> bool:
    """|a - b| <= max(abs_tol, rel_tol * max(1, |a| + |b|))"""
    if a == b:
        return True

    norm = max(1.0, abs(a) + abs(b))

    return abs(a - b) <= max(abs_tol, rel_tol * norm)


class Secant(Enumerator[Tuple[float, float]]):
    """
    Secant iteration as an enumerator over (x, f(x)) points.

    Keeps the two most recent points (x0, y0), (x1, y1) and the slope m
    used for the next step x1 - y1/m. The slope is damped in two ways:
    - when x0 and x1 are nearly equal the previous slope is kept
    - when the previous two points bracketed a root and the new slope is
      flatter than the previous one, the previous slope is kept so the
      iteration does not shoot out of the bracket

    The enumerator is live while y1 != 0; current() is (x1, y1). f is held
    by reference and called once per step.
    """

    def __init__(self, f: Func, x0: float, x1: float, tolerance: Optional[Tolerance] = None):
        self.f = f
        self.tolerance = tolerance if tolerance is not None else Tolerance()
        self.iterations = 0
        self.x0 = float(x0)
        self.x1 = float(x1)
        if nearly_equal(self.x0, self.x1, self.tolerance.rel_tol, self.tolerance.abs_tol):
            raise DegenerateSlopeError(f"Initial points {x0} and {x1} are too close")
        self.y0 = self._evaluate(self.x0)
        self.y1 = self._evaluate(self.x1)
        self.m = (self.y1 - self.y0) / (self.x1 - self.x0)
        self.m_prev = 0.0

    def _evaluate(self, x: float) -> float:
        y = float(self.f(x))
        if math.isnan(y):
            raise NonConvergenceError(f"Objective is NaN at x={x}", x, y, self.iterations)
        return y

    def has_current(self) -> bool:
        return self.y1 != 0.0

    def current(self) -> Tuple[float, float]:
        self._require()
        return (self.x1, self.y1)

    def point(self) -> Tuple[float, float]:
        """Latest (x, y), available even after an exact root was hit."""
        return (self.x1, self.y1)

    def advance(self) -> "Secant":
        if not self.has_current():
            return self
        if self.m == 0.0 or not math.isfinite(self.m):
            raise DegenerateSlopeError(f"Secant slope is {self.m} at x={self.x1}")

        bounded = self.y0 * self.y1 < 0

        x = self.x1 - self.y1 / self.m
        y = self._evaluate(x)

        self.x0, self.y0 = self.x1, self.y1
        self.x1, self.y1 = x, y
        self.m_prev = self.m

        if not nearly_equal(self.x0, self.x1, self.tolerance.rel_tol, self.tolerance.abs_tol):
            self.m = (self.y1 - self.y0) / (self.x1 - self.x0)

        if bounded and abs(self.m) < abs(self.m_prev):
            self.m = self.m_prev

        self.iterations += 1
        logger.debug("Secant iter %s: x=%s y=%s slope=%s", self.iterations, x, y, self.m)

        return self

    def nearly_zero(self) -> bool:
        """Last two x are nearly equal and the last y is nearly zero."""
        rel, abs_ = self.tolerance.rel_tol, self.tolerance.abs_tol

        return nearly_equal(self.x0, self.x1, rel, abs_) and nearly_equal(self.y1, 0.0, rel, abs_)

    def solve(self) -> Tuple[float, float]:
        """
        Iterate until converged.

        Returns:
            (x, y) with y nearly zero

        Raises:
            NonConvergenceError: After tolerance.max_iterations steps
            DegenerateSlopeError: If the slope becomes zero
        """
        while self.has_current() and not self.nearly_zero():
            if self.iterations >= self.tolerance.max_iterations:
                raise NonConvergenceError(
                    f"Secant did not converge in {self.iterations} iterations "
                    f"(x={self.x1}, y={self.y1})",
                    self.x1,
                    self.y1,
                    self.iterations,
                )
            self.advance()

        return self.point()

    def _state(self) -> Tuple:
        return (self.x0, self.x1, self.y0, self.y1, self.m, self.m_prev, self.tolerance)

    def __repr__(self) -> str:
        return f"Secant(x0={self.x0}, x1={self.x1}, y1={self.y1}, iterations={self.iterations})"


def secant_solve(f: Func, x0: float, x1: float, tolerance: Optional[Tolerance] = None) -> RootResult:
    """
    Find a root of f starting from x0 and x1.

    Args:
        f: Scalar objective, side-effect free
        x0: First initial point
        x1: Second initial point; x0 and x1 need not bracket the root
        tolerance: Convergence settings, defaults to Tolerance()

    Returns:
        RootResult with the root, the objective there and the step count
    """
    s = Secant(f, x0, x1, tolerance)
    x, y = s.solve()

    return RootResult(x, y, s.iterations, True, "secant")


__all__ = [
    "DegenerateSlopeError",
    "NonConvergenceError",
    "Tolerance",
    "RootResult",
    "nearly_equal",
    "Secant",
    "secant_solve",
]
