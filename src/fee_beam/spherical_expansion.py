"""
Far-field evaluation of the FEKO spherical wave expansion of a tile beam.

The per-tile sum of mode coefficients (Q1 for s=1 and Q2 for s=2) is turned
into the theta and phi field components Sigma_T and Sigma_P. Associated
Legendre functions come from stable normalised recurrences, so the
evaluation is accurate for high mode degrees and exact at the poles.

References:
    "Calculating Far-Field Radiation Based on FEKO Spherical Wave
    Coefficients", draft 10 June 2015.
    Sokolowski et al. 2017, PASA 34, e062.
"""

import logging
import numpy as np
from typing import NamedTuple, Tuple

logger = logging.getLogger(__name__)

# i**n for n modulo 4, exact
_I_POWERS = np.array([1, 1j, -1, -1j], dtype=complex)


class ModeSeries(NamedTuple):
    """
    Dipole-summed coefficients of one polarisation, ready for evaluation.

    The six per-mode vectors fold the mode normalisation, the sign factor
    and the powers of i into the coefficients, so the field components
    reduce to

        emn_T = P_sin * (u * t_u + t_0) + P1 * t_1
        emn_P = P_sin * (p_0 + u * p_u) + P1 * p_1

    with u = cos(theta). ``one_hot`` maps modes onto their m value.
    """
    m: np.ndarray
    n: np.ndarray
    n_max: int
    one_hot: np.ndarray
    t_u: np.ndarray
    t_0: np.ndarray
    t_1: np.ndarray
    p_0: np.ndarray
    p_u: np.ndarray
    p_1: np.ndarray


# ============================================================================
# LEGENDRE FUNCTIONS
# ============================================================================

def normalized_legendre_table(n_max: int, theta: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Normalised associated Legendre functions and their ratio to sin(theta).

    P[n, m] = sqrt((2n+1)/2 * (n-m)!/(n+m)!) * P_n^m(cos theta), including the
    Condon-Shortley phase, and Q[n, m] = P[n, m] / sin(theta) for m >= 1.
    Q is seeded from sin(theta)**(m-1) and so has the exact limit at the
    poles. Q[:, 0] is left at zero.

    Args:
        n_max: Highest degree
        theta: Polar angles in radians, shape (K,)

    Returns:
        Tuple (P, Q), each of shape (n_max + 1, n_max + 2, K). The extra
        order column is zero so that P[n, m + 1] is always addressable.
    """
    theta = np.atleast_1d(np.asarray(theta, dtype=float))
    x = np.cos(theta)
    sin_theta = np.sin(theta)
    abs_s = np.abs(sin_theta)
    sign_s = np.where(sin_theta < 0, -1.0, 1.0)

    P = np.zeros((n_max + 1, n_max + 2, theta.size))
    Q = np.zeros_like(P)

    c_mm = np.sqrt(0.5)
    s_pow = np.ones_like(theta)  # |sin|^(m-1)
    for m in range(n_max + 1):
        if m == 0:
            P[0, 0] = c_mm
        else:
            c_mm = -np.sqrt((2 * m + 1) / (2 * m)) * c_mm
            if m > 1:
                s_pow = s_pow * abs_s
            Q[m, m] = c_mm * s_pow * sign_s
            P[m, m] = c_mm * s_pow * abs_s

        if m + 1 <= n_max:
            a_first = np.sqrt(2 * m + 3)
            P[m + 1, m] = a_first * x * P[m, m]
            Q[m + 1, m] = a_first * x * Q[m, m]

        a_prev = np.sqrt(2 * m + 3)
        for n in range(m + 2, n_max + 1):
            a_nm = np.sqrt((4 * n * n - 1) / (n * n - m * m))
            P[n, m] = a_nm * (x * P[n - 1, m] - P[n - 2, m] / a_prev)
            Q[n, m] = a_nm * (x * Q[n - 1, m] - Q[n - 2, m] / a_prev)
            a_prev = a_nm

    return P, Q


def mode_legendre_terms(
    P: np.ndarray,
    Q: np.ndarray,
    m: np.ndarray,
    n: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Gather the two Legendre flavours used by each mode.

    Both are scaled by the (n, |m|) normalisation:
        P_sin = P_n^|m| / sin(theta)   (zero for m = 0)
        P1    = P_n^(|m|+1)            (zero for |m| = n)

    Returns:
        Tuple (P_sin, P1), each of shape (K, L)
    """
    abs_m = np.abs(m)
    p_sin = Q[n, abs_m].T
    ratio = np.sqrt((n - abs_m) * (n + abs_m + 1.0))
    p1 = (P[n, abs_m + 1] * ratio[:, np.newaxis]).T
    return p_sin, p1


# ============================================================================
# MODE SERIES
# ============================================================================

def prepare_mode_series(q1: np.ndarray, q2: np.ndarray, m: np.ndarray, n: np.ndarray) -> ModeSeries:
    """
    Fold mode constants into dipole-summed coefficients.

    Args:
        q1: Summed s=1 coefficients, shape (L,)
        q2: Summed s=2 coefficients, shape (L,)
        m: Mode orders, shape (L,)
        n: Mode degrees, shape (L,)

    Returns:
        ModeSeries for calc_sigmas
    """
    m = np.asarray(m, dtype=int)
    n = np.asarray(n, dtype=int)
    abs_m = np.abs(m)
    n_max = int(n.max())

    sign = np.where((m > 0) & (m % 2 == 1), -1.0, 1.0)
    c = sign / np.sqrt(n * (n + 1.0))
    j_n = _I_POWERS[n % 4] * c
    j_n1 = _I_POWERS[(n + 1) % 4] * c

    one_hot = np.zeros((len(m), 2 * n_max + 1))
    one_hot[np.arange(len(m)), m + n_max] = 1.0

    return ModeSeries(
        m=m,
        n=n,
        n_max=n_max,
        one_hot=one_hot,
        t_u=j_n * abs_m * q2,
        t_0=-j_n * m * q1,
        t_1=j_n * q2,
        p_0=j_n1 * m * q2,
        p_u=-j_n1 * abs_m * q1,
        p_1=-j_n1 * q1,
    )


def calc_sigmas(series: ModeSeries, az: np.ndarray, za: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Evaluate the theta and phi field sums for a set of directions.

    Mode terms are first summed per distinct m and then multiplied by the
    azimuthal factor exp(i m phi), where phi = pi/2 - az converts the
    north-through-east azimuth to the FEKO angle.

    Args:
        series: Prepared coefficients of one polarisation
        az: Azimuths in radians, shape (K,)
        za: Zenith angles in radians, shape (K,)

    Returns:
        Tuple (Sigma_T, Sigma_P) of complex arrays, shape (K,)
    """
    az = np.atleast_1d(np.asarray(az, dtype=float))
    za = np.atleast_1d(np.asarray(za, dtype=float))

    P, Q = normalized_legendre_table(series.n_max, za)
    p_sin, p1 = mode_legendre_terms(P, Q, series.m, series.n)
    u = np.cos(za)[:, np.newaxis]

    emn_t = p_sin * (u * series.t_u + series.t_0) + p1 * series.t_1
    emn_p = p_sin * (series.p_0 + u * series.p_u) + p1 * series.p_1

    emn_t_sum = emn_t @ series.one_hot
    emn_p_sum = emn_p @ series.one_hot

    phi = np.pi / 2 - az
    m_range = np.arange(-series.n_max, series.n_max + 1)
    phi_comp = np.exp(1j * np.outer(phi, m_range))

    sigma_t = np.sum(emn_t_sum * phi_comp, axis=1)
    sigma_p = np.sum(emn_p_sum * phi_comp, axis=1)
    return sigma_t, sigma_p
