"""
FlatCurve: Piecewise-Flat Forward Curve Engine

A small library for:
- Streaming time-indexed data through lazy enumerators and combinators
- Piecewise-flat forward curves: integration, discounting, spot rates, PV
- Secant root finding with slope damping and an iteration cap
- Bootstrapping one flat forward segment per market instrument

Scope: single curve, continuously compounded rates, times in years.
"""

__version__ = "0.1.0"

# Enumerators
from .iterable import (
    Enumerator,
    ExhaustedError,
    Sequence,
    BufferView,
    array,
    constant,
    take,
    drop,
    pair,
    when,
    until,
    apply,
    counted,
    fold,
    chain,
    length,
)

# Root finding
from .root1d import (
    Tolerance,
    Secant,
    RootResult,
    secant_solve,
    nearly_equal,
    DegenerateSlopeError,
    NonConvergenceError,
)

# Curves
from .curves import (
    PWFlatCurve,
    InvalidKnotOrderingError,
    BootstrapError,
    BootstrapResult,
    CurveBootstrapper,
    bootstrap_from_quotes,
    next_knot,
    ZeroCouponBond,
    Deposit,
    FixedRateBond,
    ParSwap,
)

# Conventions
from .conventions import Frequency, tenor_to_years

__all__ = [
    # Version
    "__version__",
    # Enumerators
    "Enumerator",
    "ExhaustedError",
    "Sequence",
    "BufferView",
    "array",
    "constant",
    "take",
    "drop",
    "pair",
    "when",
    "until",
    "apply",
    "counted",
    "fold",
    "chain",
    "length",
    # Root finding
    "Tolerance",
    "Secant",
    "RootResult",
    "secant_solve",
    "nearly_equal",
    "DegenerateSlopeError",
    "NonConvergenceError",
    # Curves
    "PWFlatCurve",
    "InvalidKnotOrderingError",
    "BootstrapError",
    "BootstrapResult",
    "CurveBootstrapper",
    "bootstrap_from_quotes",
    "next_knot",
    "ZeroCouponBond",
    "Deposit",
    "FixedRateBond",
    "ParSwap",
    # Conventions
    "Frequency",
    "tenor_to_years",
]
