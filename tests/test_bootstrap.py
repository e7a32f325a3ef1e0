"""
Unit tests for curve bootstrapping.
"""

import math

import numpy as np
import pandas as pd
import pytest
from scipy.optimize import brentq

from flatcurve.curves import (
    BootstrapError,
    CurveBootstrapper,
    Deposit,
    FixedRateBond,
    InvalidKnotOrderingError,
    ParSwap,
    PWFlatCurve,
    ZeroCouponBond,
    bootstrap_from_quotes,
    next_knot,
)
from flatcurve.iterable import array
from flatcurve.root1d import Tolerance


@pytest.fixture
def true_curve():
    """Curve the market instruments below are priced from."""
    return PWFlatCurve.from_arrays([0.5, 1.0, 2.0, 5.0], [0.03, 0.035, 0.04, 0.045])


def market_price(curve, inst):
    u, c = inst.cash_flows()
    return curve.present_value(array(u), array(c))[0]


@pytest.fixture
def instruments(true_curve):
    """Deposit, zero, par swap and coupon bond consistent with true_curve."""
    D = true_curve.discount
    deposit_rate = (1.0 / D(0.5) - 1.0) / 0.5
    swap_rate = (1.0 - D(2.0)) / (D(1.0) + D(2.0))

    bond = FixedRateBond(tenor="5Y", quote=1.0, coupon=0.05)
    bond.quote = market_price(true_curve, bond)

    return [
        bond,
        ZeroCouponBond(tenor="1Y", quote=D(1.0)),
        Deposit(tenor="6M", quote=deposit_rate),
        ParSwap(tenor="2Y", quote=swap_rate),
    ]


class TestNextKnot:
    """Tests for the single bootstrap step."""

    def test_zero_coupon_round_trip(self):
        """One zero maturing at 1 priced exp(-5%) gives a 5% segment."""
        p = math.exp(-0.05)
        empty = PWFlatCurve.from_arrays([], [])

        t, x = next_knot(empty, array([1.0]), array([1.0]), p)

        assert t == 1.0
        assert x == pytest.approx(0.05, abs=1e-10)

        curve = PWFlatCurve.from_arrays([t], [x])
        pv, _ = curve.present_value(array([1.0]), array([1.0]))
        assert pv == pytest.approx(p, rel=1e-12)

    def test_matches_brentq(self):
        p = 0.93
        t, x = next_knot(PWFlatCurve.from_arrays([], []), array([2.0]), array([1.0]), p)

        expected = brentq(lambda r: math.exp(-2.0 * r) - p, 0.0, 1.0, xtol=1e-15)
        assert x == pytest.approx(expected, abs=1e-10)

    def test_second_segment(self):
        curve = PWFlatCurve.from_arrays([1.0], [0.05])
        p = math.exp(-0.05 - 0.06)

        t, x = next_knot(curve, array([2.0]), array([1.0]), p)

        assert t == 2.0
        assert x == pytest.approx(0.06, abs=1e-10)

    def test_flows_straddling_last_knot(self):
        """Flows before and after the last knot are valued on the right segments."""
        truth = PWFlatCurve.from_arrays([1.0, 2.0], [0.05, 0.07])
        u = np.array([0.5, 1.5, 2.0])
        c = np.array([0.03, 0.03, 1.03])
        p = truth.present_value(array(u), array(c))[0]

        curve = PWFlatCurve.from_arrays([1.0], [0.05])
        t, x = next_knot(curve, array(u), array(c), p)

        assert t == 2.0
        assert x == pytest.approx(0.07, abs=1e-10)

    def test_flow_on_knot(self):
        truth = PWFlatCurve.from_arrays([1.0, 3.0], [0.02, 0.03])
        u = np.array([1.0, 2.0, 3.0])
        c = np.array([0.04, 0.04, 1.04])
        p = truth.present_value(array(u), array(c))[0]

        t, x = next_knot(PWFlatCurve.from_arrays([1.0], [0.02]), array(u), array(c), p)

        assert t == 3.0
        assert x == pytest.approx(0.03, abs=1e-10)

    def test_inputs_unchanged(self):
        curve = PWFlatCurve.from_arrays([1.0], [0.05])
        u = array([0.5, 2.0])
        c = array([0.1, 1.1])
        before = (curve.copy(), u.copy(), c.copy())

        next_knot(curve, u, c, 1.0)

        assert (curve, u, c) == before

    def test_guess(self):
        p = math.exp(-0.05)
        _, x = next_knot(
            PWFlatCurve.from_arrays([], []), array([1.0]), array([1.0]), p, guess=0.2
        )

        assert x == pytest.approx(0.05, abs=1e-10)

    def test_no_flow_after_last_knot(self):
        curve = PWFlatCurve.from_arrays([1.0, 2.0], [0.05, 0.06])

        with pytest.raises(InvalidKnotOrderingError):
            next_knot(curve, array([0.5, 2.0]), array([0.1, 1.1]), 1.0)

    def test_non_positive_price(self):
        with pytest.raises(ValueError):
            next_knot(PWFlatCurve.from_arrays([], []), array([1.0]), array([1.0]), 0.0)

    def test_solver_failure_names_instrument(self):
        with pytest.raises(BootstrapError) as info:
            next_knot(
                PWFlatCurve.from_arrays([], []),
                array([1.0]),
                array([1.0]),
                math.exp(-0.05),
                tolerance=Tolerance(max_iterations=1),
                label="1Y",
            )

        assert info.value.label == "1Y"
        assert info.value.maturity == 1.0
        assert "1Y" in str(info.value)


class TestCurveBootstrapper:
    """Tests for the sequential bootstrapper."""

    def test_recovers_true_curve(self, true_curve, instruments):
        result = CurveBootstrapper().bootstrap(instruments)

        assert result.success, result.message
        times, rates = result.curve.knots()
        expected_times, expected_rates = true_curve.knots()
        np.testing.assert_allclose(times, expected_times, atol=1e-12)
        np.testing.assert_allclose(rates, expected_rates, atol=1e-9)

    def test_knots_in_maturity_order(self, instruments):
        result = CurveBootstrapper().bootstrap(instruments)

        assert [k[0] for k in result.knots] == ["6M", "1Y", "2Y", "5Y"]

    def test_repricing_errors(self, instruments):
        result = CurveBootstrapper().bootstrap(instruments)

        assert set(result.repricing_errors) == {"6M", "1Y", "2Y", "5Y"}
        for error in result.repricing_errors.values():
            assert abs(error) < 1e-10

    def test_no_verify(self, instruments):
        result = CurveBootstrapper().bootstrap(instruments, verify=False)

        assert result.success
        assert result.repricing_errors == {}

    def test_extrapolation(self, instruments):
        result = CurveBootstrapper(extrapolation=0.05).bootstrap(instruments)

        assert result.curve.forward(10.0) == 0.05
        assert not math.isnan(result.curve.discount(10.0))

    def test_default_curve_does_not_extrapolate(self, instruments):
        result = CurveBootstrapper().bootstrap(instruments)

        assert math.isnan(result.curve.discount(10.0))

    def test_empty(self):
        result = CurveBootstrapper().bootstrap([])

        assert not result.success
        assert result.message == "No instruments provided"

    def test_duplicate_maturity_fails(self):
        instruments = [
            ZeroCouponBond(tenor="1Y", quote=0.95),
            Deposit(tenor="12M", quote=0.05),
        ]
        result = CurveBootstrapper().bootstrap(instruments)

        assert not result.success
        assert "12M" in result.message or "1Y" in result.message
        assert len(result.knots) == 1

    def test_bad_quote_reported(self):
        """A non-positive price fails the result instead of raising."""
        instruments = [
            Deposit(tenor="6M", quote=0.04),
            ZeroCouponBond(tenor="1Y", quote=0.0),
        ]
        result = CurveBootstrapper().bootstrap(instruments)

        assert not result.success
        assert "1Y" in result.message
        assert [k[0] for k in result.knots] == ["6M"]

    def test_solver_failure_reported(self, instruments):
        bootstrapper = CurveBootstrapper(solver_tolerance=Tolerance(max_iterations=1))
        result = bootstrapper.bootstrap(instruments)

        assert not result.success
        assert "6M" in result.message

    def test_to_frame(self, instruments):
        result = CurveBootstrapper().bootstrap(instruments)
        df = result.to_frame()

        assert isinstance(df, pd.DataFrame)
        assert list(df.columns) == [
            "tenor", "time", "forward", "spot", "discount", "repricing_error"
        ]
        assert len(df) == 4
        assert df["time"].is_monotonic_increasing
        assert (df["discount"] < 1.0).all()
        assert df.loc[0, "spot"] == pytest.approx(df.loc[0, "forward"])


class TestBootstrapFromQuotes:
    """Tests for the quote dictionary wrapper."""

    def test_bootstrap_simple(self):
        quotes = [
            {"instrument_type": "DEPOSIT", "tenor": "3M", "quote": 0.0530},
            {"instrument_type": "ZERO", "tenor": "6M", "quote": 0.9740},
            {"instrument_type": "SWAP", "tenor": "1Y", "quote": 0.0500, "frequency": "SEMI"},
            {"instrument_type": "SWAP", "tenor": "2Y", "quote": 0.0480, "frequency": "SEMI"},
            {"instrument_type": "BOND", "tenor": "5Y", "quote": 0.99, "coupon": 0.045},
        ]

        curve = bootstrap_from_quotes(quotes)

        times, rates = curve.knots()
        np.testing.assert_allclose(times, [0.25, 0.5, 1.0, 2.0, 5.0])
        assert np.all(rates > 0.0)
        assert curve.discount(0.0) == 1.0

    def test_bootstrap_monotonic_df(self):
        quotes = [
            {"instrument_type": "DEPOSIT", "tenor": "1M", "quote": 0.0530},
            {"instrument_type": "OIS", "tenor": "3M", "quote": 0.0528},
            {"instrument_type": "OIS", "tenor": "6M", "quote": 0.0525},
            {"instrument_type": "OIS", "tenor": "1Y", "quote": 0.0520},
            {"instrument_type": "OIS", "tenor": "2Y", "quote": 0.0510},
        ]

        curve = bootstrap_from_quotes(quotes)

        times, _ = curve.knots()
        dfs = [curve.discount(t) for t in times]
        for i in range(1, len(dfs)):
            assert dfs[i] < dfs[i - 1], "DFs should be monotonically decreasing"

    def test_failure_raises(self):
        quotes = [
            {"instrument_type": "ZERO", "tenor": "1Y", "quote": 0.95},
            {"instrument_type": "ZERO", "tenor": "12M", "quote": 0.95},
        ]

        with pytest.raises(RuntimeError):
            bootstrap_from_quotes(quotes)

    def test_unknown_instrument(self):
        with pytest.raises(ValueError):
            bootstrap_from_quotes([{"instrument_type": "CAP", "tenor": "1Y", "quote": 0.01}])
