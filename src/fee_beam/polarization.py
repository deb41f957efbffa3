"""
Parallactic-angle correction of tile Jones matrices.

The FEE model gives Jones matrices against the local (theta, phi) sky basis.
Rotating by the parallactic angle plus 90 degrees re-expresses them against
the equatorial basis used for sky polarisation.
"""
import numpy as np
import logging
from typing import Tuple

# Configure logging
logger = logging.getLogger(__name__)


def azel_to_hadec(az: np.ndarray, el: np.ndarray, latitude: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Convert horizon coordinates to hour angle and declination.

    Args:
        az: Azimuth in radians, north through east
        el: Elevation in radians
        latitude: Observatory latitude in radians

    Returns:
        Tuple (hour_angle, declination) in radians
    """
    az = np.asarray(az, dtype=float)
    el = np.asarray(el, dtype=float)
    sin_a, cos_a = np.sin(az), np.cos(az)
    sin_e, cos_e = np.sin(el), np.cos(el)
    sin_p, cos_p = np.sin(latitude), np.cos(latitude)

    x = -cos_a * cos_e * sin_p + sin_e * cos_p
    y = -sin_a * cos_e
    z = cos_a * cos_e * cos_p + sin_e * sin_p

    r = np.hypot(x, y)
    ha = np.where(r != 0, np.arctan2(y, x), 0.0)
    dec = np.arctan2(z, r)
    return ha, dec


def parallactic_angle(az: np.ndarray, za: np.ndarray, latitude: float) -> np.ndarray:
    """
    Parallactic angle of each direction.

    Args:
        az: Azimuth in radians, north through east
        za: Zenith angle in radians
        latitude: Observatory latitude in radians

    Returns:
        Parallactic angle in radians
    """
    ha, dec = azel_to_hadec(az, np.pi / 2 - np.asarray(za, dtype=float), latitude)
    cos_p = np.cos(latitude)
    sqsz = cos_p * np.sin(ha)
    cqsz = np.sin(latitude) * np.cos(dec) - cos_p * np.sin(dec) * np.cos(ha)
    return np.where((sqsz != 0) | (cqsz != 0), np.arctan2(sqsz, cqsz), 0.0)


def apply_parallactic_correction(jones: np.ndarray, az: np.ndarray, za: np.ndarray,
                                 latitude: float) -> np.ndarray:
    """
    Rotate Jones matrices into the parallactic frame, in place.

    J' = J @ [[cos c, sin c], [-sin c, cos c]] with c = pa + pi/2.

    Args:
        jones: Array of shape (K, 2, 2)
        az: Azimuths in radians, shape (K,)
        za: Zenith angles in radians, shape (K,)
        latitude: Observatory latitude in radians

    Returns:
        The rotated array
    """
    chi = parallactic_angle(az, za, latitude) + np.pi / 2
    s_rot = np.sin(chi)[:, np.newaxis]
    c_rot = np.cos(chi)[:, np.newaxis]

    col0 = jones[:, :, 0].copy()
    col1 = jones[:, :, 1].copy()
    jones[:, :, 0] = col0 * c_rot - col1 * s_rot
    jones[:, :, 1] = col0 * s_rot + col1 * c_rot
    return jones


def reorder_iau(jones: np.ndarray) -> np.ndarray:
    """Reverse both Jones axes so the north-south dipole comes first."""
    return jones[..., ::-1, ::-1]
