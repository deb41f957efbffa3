"""
Tests for the normalised Legendre recurrences and the spherical-wave sums.
"""
import math

import numpy as np
import pytest
from scipy.special import lpmv

from fee_beam.spherical_expansion import (
    calc_sigmas,
    mode_legendre_terms,
    normalized_legendre_table,
    prepare_mode_series,
)


def norm_factor(n, m):
    return math.sqrt((2 * n + 1) / 2 * math.factorial(n - m) / math.factorial(n + m))


def test_legendre_matches_scipy():
    """Normalised recurrence agrees with scipy's lpmv times the normalisation."""
    n_max = 10
    theta = np.linspace(0.01, np.pi - 0.01, 37)
    P, _ = normalized_legendre_table(n_max, theta)

    for n in range(n_max + 1):
        for m in range(n + 1):
            expected = norm_factor(n, m) * lpmv(m, n, np.cos(theta))
            np.testing.assert_allclose(P[n, m], expected, rtol=1e-10, atol=1e-12,
                                       err_msg=f"n={n}, m={m}")


def test_legendre_over_sin_consistent():
    """Q = P / sin(theta) away from the poles."""
    n_max = 8
    theta = np.linspace(0.05, np.pi - 0.05, 21)
    P, Q = normalized_legendre_table(n_max, theta)

    for n in range(1, n_max + 1):
        for m in range(1, n + 1):
            np.testing.assert_allclose(Q[n, m] * np.sin(theta), P[n, m], rtol=1e-10, atol=1e-13)


def test_legendre_over_sin_pole_limits():
    """At theta = 0, P_n^1/sin = -n(n+1)/2 (normalised) and higher orders vanish."""
    n_max = 12
    _, Q = normalized_legendre_table(n_max, np.array([0.0]))

    for n in range(1, n_max + 1):
        expected = -norm_factor(n, 1) * n * (n + 1) / 2
        np.testing.assert_allclose(Q[n, 1, 0], expected, rtol=1e-12)
        for m in range(2, n + 1):
            assert Q[n, m, 0] == 0.0


def test_legendre_table_is_finite_for_high_degree():
    """The recurrence stays finite where factorial-based formulas overflow."""
    theta = np.linspace(0.0, np.pi / 2, 50)
    P, Q = normalized_legendre_table(120, theta)
    assert np.all(np.isfinite(P))
    assert np.all(np.isfinite(Q))


def test_mode_terms_zero_for_edge_orders():
    """P_sin vanishes for m = 0 and P1 vanishes for |m| = n."""
    theta = np.array([0.3, 1.1])
    P, Q = normalized_legendre_table(3, theta)
    m = np.array([0, 3, -3])
    n = np.array([2, 3, 3])
    p_sin, p1 = mode_legendre_terms(P, Q, m, n)

    assert p_sin.shape == (2, 3)
    np.testing.assert_array_equal(p_sin[:, 0], 0.0)
    np.testing.assert_array_equal(p1[:, 1:], 0.0)
    np.testing.assert_allclose(p_sin[:, 1], p_sin[:, 2])


def test_single_mode_analytic():
    """A lone s=2, m=0, n=1 mode gives Sigma_T = -i sqrt(3)/2 Q2 sin(theta), Sigma_P = 0."""
    q2 = 0.7 - 0.2j
    series = prepare_mode_series(np.array([0j]), np.array([q2]), np.array([0]), np.array([1]))

    az = np.array([0.0, 0.4, 1.3, 2.9, 4.0])
    za = np.array([0.0, 0.2, 0.7, 1.2, np.pi / 2])
    sigma_t, sigma_p = calc_sigmas(series, az, za)

    np.testing.assert_allclose(sigma_t, -1j * np.sqrt(3) / 2 * q2 * np.sin(za), atol=1e-14)
    np.testing.assert_allclose(sigma_p, 0.0, atol=1e-14)


def test_east_west_dipole_modes_at_zenith():
    """Opposite s=2 coefficients at m = +-1 give Sigma_T ~ sin(az) and Sigma_P ~ -cos(az) at zenith."""
    a = 0.5
    series = prepare_mode_series(
        np.zeros(3, dtype=complex),
        np.array([-a, 0.0, a], dtype=complex),
        np.array([-1, 0, 1]),
        np.array([1, 1, 1]),
    )
    az = np.linspace(0, 2 * np.pi, 9)
    sigma_t, sigma_p = calc_sigmas(series, az, np.zeros_like(az))

    np.testing.assert_allclose(sigma_t, 1j * np.sqrt(3 / 2) * a * np.sin(az), atol=1e-14)
    np.testing.assert_allclose(sigma_p, -1j * np.sqrt(3 / 2) * a * np.cos(az), atol=1e-14)


@pytest.mark.parametrize("n_max", [1, 4])
def test_sigmas_shape(n_max):
    from fee_beam.utilities import feko_modes
    m, n = feko_modes(n_max)
    rng = np.random.default_rng(0)
    q1 = rng.standard_normal(len(m)) + 1j * rng.standard_normal(len(m))
    q2 = rng.standard_normal(len(m)) + 1j * rng.standard_normal(len(m))
    series = prepare_mode_series(q1, q2, m, n)

    sigma_t, sigma_p = calc_sigmas(series, np.array([0.1, 0.2]), np.array([0.3, 0.4]))
    assert sigma_t.shape == (2,)
    assert sigma_p.shape == (2,)
    assert series.one_hot.shape == (len(m), 2 * n_max + 1)
