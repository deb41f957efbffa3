"""
Jones matrix assembly and zenith normalisation.

Jones matrices are stored as (..., 2, 2) complex arrays. Rows are the
dipole polarisations (X east-west, Y north-south). Columns are the sky
unit vectors (theta, phi).
"""

import logging
import numpy as np

from .coefficients import CombinedCoefficients
from .errors import SingularZenithResponseError
from .spherical_expansion import calc_sigmas
from .utilities import ZENITH_NORM_AZIMUTHS

logger = logging.getLogger(__name__)


def assemble_jones(sigma_t_x: np.ndarray, sigma_p_x: np.ndarray,
                   sigma_t_y: np.ndarray, sigma_p_y: np.ndarray,
                   out: np.ndarray = None) -> np.ndarray:
    """
    Place the field sums into Jones matrices.

    The phi column is negated: phi = pi/2 - az reverses the orientation of
    the phi unit vector with respect to azimuth.

    Args:
        sigma_t_x, sigma_p_x: X dipole theta and phi sums, shape (K,)
        sigma_t_y, sigma_p_y: Y dipole theta and phi sums, shape (K,)
        out: Optional (K, 2, 2) complex array to write into

    Returns:
        Array of shape (K, 2, 2)
    """
    if out is None:
        out = np.empty((len(sigma_t_x), 2, 2), dtype=np.complex128)
    out[:, 0, 0] = sigma_t_x
    out[:, 0, 1] = -sigma_p_x
    out[:, 1, 0] = sigma_t_y
    out[:, 1, 1] = -sigma_p_y
    return out


def evaluate_jones(coeffs: CombinedCoefficients, az: np.ndarray, za: np.ndarray,
                   out: np.ndarray = None) -> np.ndarray:
    """Unnormalised Jones matrices of a tile for the given directions."""
    sigma_t_x, sigma_p_x = calc_sigmas(coeffs.x, az, za)
    sigma_t_y, sigma_p_y = calc_sigmas(coeffs.y, az, za)
    return assemble_jones(sigma_t_x, sigma_p_x, sigma_t_y, sigma_p_y, out=out)


def calc_zenith_norm_factors(coeffs: CombinedCoefficients) -> np.ndarray:
    """
    Per-entry normalisation factors at zenith.

    Each Jones entry is evaluated at za = 0 and the azimuth where that entry
    peaks, and its magnitude is taken. Magnitudes keep the sign of the
    Jones entries unchanged.

    Returns:
        Real array of shape (2, 2)

    Raises:
        SingularZenithResponseError: If any factor is zero or not finite
    """
    az = np.array(ZENITH_NORM_AZIMUTHS, dtype=float).ravel()
    za = np.zeros_like(az)
    jones = evaluate_jones(coeffs, az, za)

    factors = np.empty((2, 2))
    for i in range(2):
        for j in range(2):
            factors[i, j] = np.abs(jones[2 * i + j, i, j])

    if not np.all(np.isfinite(factors)) or np.any(factors <= np.finfo(float).tiny):
        raise SingularZenithResponseError(
            f"Zenith response at {coeffs.freq_hz} Hz is zero or not finite "
            f"(factors {factors.ravel().tolist()}); cannot normalise"
        )
    logger.debug(f"Zenith normalisation factors at {coeffs.freq_hz} Hz: {factors.ravel().tolist()}")
    return factors


def apply_zenith_norm(jones: np.ndarray, factors: np.ndarray) -> np.ndarray:
    """Divide each Jones entry by its zenith factor, in place."""
    jones /= factors
    return jones
