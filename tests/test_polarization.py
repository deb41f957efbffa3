"""
Tests for the parallactic-angle geometry and Jones rotation.
"""
import numpy as np
import pytest

from fee_beam import (
    MWA_LATITUDE_RAD,
    apply_parallactic_correction,
    azel_to_hadec,
    parallactic_angle,
    reorder_iau,
)


def test_zenith_maps_to_latitude():
    ha, dec = azel_to_hadec(np.array([0.0, 1.0, 3.0]), np.full(3, np.pi / 2), MWA_LATITUDE_RAD)
    np.testing.assert_allclose(ha, 0.0, atol=1e-12)
    np.testing.assert_allclose(dec, MWA_LATITUDE_RAD, atol=1e-12)


def test_east_horizon_is_rising():
    """A source due east on the horizon has a negative hour angle."""
    ha, _ = azel_to_hadec(np.array([np.pi / 2]), np.array([0.0]), MWA_LATITUDE_RAD)
    assert ha[0] < 0


def test_parallactic_angle_on_meridian():
    """South of zenith the angle is 0, north of zenith it is +-pi (southern site)."""
    za = np.array([0.2, 0.5])
    south = parallactic_angle(np.full(2, np.pi), za, MWA_LATITUDE_RAD)
    north = parallactic_angle(np.zeros(2), za, MWA_LATITUDE_RAD)

    np.testing.assert_allclose(south, 0.0, atol=1e-12)
    np.testing.assert_allclose(np.abs(north), np.pi, atol=1e-12)


def test_parallactic_angle_east_west_symmetry():
    za = np.array([0.4])
    east = parallactic_angle(np.array([np.pi / 2]), za, MWA_LATITUDE_RAD)
    west = parallactic_angle(np.array([3 * np.pi / 2]), za, MWA_LATITUDE_RAD)
    np.testing.assert_allclose(east, -west, atol=1e-12)


def test_rotation_matches_matrix_product():
    rng = np.random.default_rng(1)
    jones = rng.standard_normal((6, 2, 2)) + 1j * rng.standard_normal((6, 2, 2))
    az = rng.uniform(0, 2 * np.pi, 6)
    za = rng.uniform(0, 1.4, 6)

    chi = parallactic_angle(az, za, MWA_LATITUDE_RAD) + np.pi / 2
    expected = np.array([
        j @ np.array([[np.cos(c), np.sin(c)], [-np.sin(c), np.cos(c)]])
        for j, c in zip(jones, chi)
    ])

    rotated = apply_parallactic_correction(jones.copy(), az, za, MWA_LATITUDE_RAD)
    np.testing.assert_allclose(rotated, expected, rtol=1e-12, atol=1e-14)


@pytest.mark.parametrize("latitude", [MWA_LATITUDE_RAD, 0.0, 0.9])
def test_rotation_preserves_frobenius_norm(latitude):
    rng = np.random.default_rng(4)
    jones = rng.standard_normal((10, 2, 2)) + 1j * rng.standard_normal((10, 2, 2))
    az = rng.uniform(0, 2 * np.pi, 10)
    za = rng.uniform(0, 1.5, 10)

    norms = np.linalg.norm(jones, axis=(1, 2))
    rotated = apply_parallactic_correction(jones.copy(), az, za, latitude)
    np.testing.assert_allclose(np.linalg.norm(rotated, axis=(1, 2)), norms, rtol=1e-12)


def test_reorder_iau():
    jones = np.arange(8, dtype=complex).reshape(2, 2, 2)
    reordered = reorder_iau(jones)
    np.testing.assert_array_equal(reordered[0], [[3, 2], [1, 0]])
    np.testing.assert_array_equal(reordered[1], [[7, 6], [5, 4]])
