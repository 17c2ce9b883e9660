"""Tests for lag polynomial algebra."""

from __future__ import annotations

import numpy as np
import pytest

from arimakit.exceptions import InvalidArgumentError
from arimakit.timeseries.lag import LagPolynomial, expand_ar, expand_ma


class TestConstruction:
    """Tests for the named constructors."""

    def test_identity(self):
        identity = LagPolynomial.identity()
        assert identity.degree == 0
        np.testing.assert_array_equal(identity.coefficients, [1.0])
        assert LagPolynomial.differences(0) == identity

    def test_second_difference(self):
        np.testing.assert_array_equal(LagPolynomial.differences(2).coefficients, [1.0, -2.0, 1.0])

    def test_seasonal_difference(self):
        np.testing.assert_array_equal(
            LagPolynomial.seasonal_differences(4, 1).coefficients, [1.0, 0.0, 0.0, 0.0, -1.0]
        )

    def test_autoregressive_and_moving_average_signs(self):
        ar = LagPolynomial.autoregressive([0.5, 0.2])
        np.testing.assert_array_equal(ar.coefficients, [1.0, -0.5, -0.2])
        np.testing.assert_array_equal(LagPolynomial.moving_average([0.4]).coefficients, [1.0, 0.4])

    @pytest.mark.parametrize(
        "factory, arg", [(LagPolynomial.differences, -1), (LagPolynomial.seasonal_difference, 0)]
    )
    def test_invalid_orders_raise(self, factory, arg):
        with pytest.raises(InvalidArgumentError):
            factory(arg)

    def test_from_coefficients_requires_unit_leading_term(self):
        with pytest.raises(InvalidArgumentError):
            LagPolynomial.from_coefficients([2.0, 1.0])

    def test_coefficients_are_read_only(self):
        poly = LagPolynomial([0.3])
        with pytest.raises(ValueError):
            poly.coefficients[1] = 0.0


class TestAlgebra:
    """Tests for polynomial multiplication."""

    def test_times_is_commutative(self):
        diff = LagPolynomial.first_difference()
        ar = LagPolynomial.autoregressive([0.5])
        expected = [1.0, -1.5, 0.5]
        np.testing.assert_allclose((diff * ar).coefficients, expected)
        np.testing.assert_allclose((ar * diff).coefficients, expected)

    def test_times_is_associative(self):
        a = LagPolynomial([0.1, -0.2])
        b = LagPolynomial.seasonal_difference(3)
        c = LagPolynomial.moving_average([0.7])
        np.testing.assert_allclose(((a * b) * c).coefficients, (a * (b * c)).coefficients)

    def test_str(self):
        assert str(LagPolynomial.differences(2)) == "1 - 2L + 1L^2"


class TestApplication:
    """Tests for applying polynomials to series."""

    def test_apply_and_filter_agree(self):
        y = np.array([1.0, 4.0, 9.0, 16.0, 25.0])
        poly = LagPolynomial.differences(2)
        np.testing.assert_allclose(poly.filter(y), [2.0, 2.0, 2.0])
        assert poly.apply(y, 4) == pytest.approx(2.0)

    def test_apply_treats_presample_as_zero(self):
        y = np.array([3.0, 5.0])
        assert LagPolynomial.first_difference().apply(y, 0) == 3.0

    def test_apply_inverse_undoes_differencing(self):
        y = np.array([1.0, 4.0, 9.0, 16.0, 25.0])
        poly = LagPolynomial.differences(2)
        w = poly.filter(y)
        rebuilt = y.copy()
        rebuilt[2:] = 0.0
        for t in range(2, y.size):
            rebuilt[t] = poly.apply_inverse(rebuilt, t, w[t - 2])
        np.testing.assert_allclose(rebuilt, y)

    @pytest.mark.parametrize("d", [0, 1, 2, 3])
    def test_apply_inverse_of_constant_series(self, d):
        poly = LagPolynomial.differences(d)
        y = np.full(10, 7.0)
        w = poly.filter(y)
        np.testing.assert_allclose(w, 7.0 if d == 0 else 0.0)
        rebuilt = np.zeros(10)
        rebuilt[:d] = y[:d]
        for t in range(d, y.size):
            rebuilt[t] = poly.apply_inverse(rebuilt, t, w[t - d])
        np.testing.assert_allclose(rebuilt, y)

    def test_predict_constant_after_first_difference(self):
        y = np.array([7.0, 7.0, 0.0])
        assert LagPolynomial.first_difference().predict(y, 2) == 7.0

    def test_filter_short_series_is_empty(self):
        assert LagPolynomial.differences(3).filter(np.array([1.0, 2.0])).size == 0

    def test_inverse_coefficients_of_ar1(self):
        psi = LagPolynomial.autoregressive([0.5]).inverse_coefficients(4)
        np.testing.assert_allclose(psi, [1.0, 0.5, 0.25, 0.125])

    def test_inverse_coefficients_of_difference(self):
        psi = LagPolynomial.differences(2).inverse_coefficients(4)
        np.testing.assert_allclose(psi, [1.0, 2.0, 3.0, 4.0])

    def test_invertibility(self):
        assert LagPolynomial.autoregressive([0.5]).is_invertible()
        assert not LagPolynomial.autoregressive([1.0]).is_invertible()
        assert not LagPolynomial.moving_average([-1.5]).is_invertible()


class TestExpansion:
    """Tests for combining seasonal and non-seasonal parts."""

    def test_expand_ar(self):
        np.testing.assert_allclose(expand_ar([0.5], [0.2], period=4), [0.5, 0.0, 0.0, 0.2, -0.1])

    def test_expand_ma(self):
        np.testing.assert_allclose(expand_ma([0.4], [0.5], period=3), [0.4, 0.0, 0.5, 0.2])

    def test_expand_without_seasonal_part(self):
        np.testing.assert_allclose(expand_ar([0.3, -0.1], [], period=12), [0.3, -0.1])
        assert expand_ma([], [], period=1).size == 0
