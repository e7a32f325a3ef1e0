"""
Curves package - piecewise-flat forward curve construction.

Provides:
- PWFlatCurve: Piecewise-flat forward curve with discounting and PV
- next_knot: Solve for the segment that reprices one instrument
- CurveBootstrapper: Sequential bootstrap from market instruments
"""

from .pwflat import PWFlatCurve, InvalidKnotOrderingError
from .bootstrap import (
    BootstrapError,
    BootstrapResult,
    CurveBootstrapper,
    bootstrap_from_quotes,
    next_knot,
)
from .instruments import (
    CurveInstrument,
    ZeroCouponBond,
    Deposit,
    FixedRateBond,
    ParSwap,
    instrument_from_quote,
)

__all__ = [
    "PWFlatCurve",
    "InvalidKnotOrderingError",
    "BootstrapError",
    "BootstrapResult",
    "CurveBootstrapper",
    "bootstrap_from_quotes",
    "next_knot",
    "CurveInstrument",
    "ZeroCouponBond",
    "Deposit",
    "FixedRateBond",
    "ParSwap",
    "instrument_from_quote",
]
