"""
Tests for beamformer settings and dipole weights.
"""
import numpy as np
import pytest

from fee_beam import (
    ConfigurationError,
    DELAY_STEP_SECONDS,
    InvalidAmplitudeLengthError,
    InvalidDelayError,
    TileConfig,
    dipole_weights,
)


def test_sixteen_amplitudes_apply_to_both_polarisations():
    amps = np.linspace(0.1, 1.6, 16)
    tile = TileConfig.from_inputs([0] * 16, amps)
    assert len(tile.amps) == 32
    np.testing.assert_allclose(tile.amps_xy[0], amps)
    np.testing.assert_allclose(tile.amps_xy[1], amps)
    assert tile == TileConfig.from_inputs([0] * 16, np.concatenate([amps, amps]))


def test_default_amplitudes_are_ones():
    tile = TileConfig.from_inputs(list(range(16)))
    assert tile.amps == (1.0,) * 32
    assert tile.delays == tuple(range(16))


@pytest.mark.parametrize("length", [0, 1, 15, 20, 31, 33])
def test_invalid_amplitude_length(length):
    with pytest.raises(InvalidAmplitudeLengthError) as excinfo:
        TileConfig.from_inputs([0] * 16, [1.0] * length)
    assert f"got {length}" in str(excinfo.value)
    assert isinstance(excinfo.value, ConfigurationError)
    assert isinstance(excinfo.value, ValueError)


@pytest.mark.parametrize("delays", [
    [0] * 15,
    [0] * 17,
    [33] + [0] * 15,
    [-1] + [0] * 15,
    [1.5] + [0] * 15,
])
def test_invalid_delays(delays):
    with pytest.raises(InvalidDelayError):
        TileConfig.from_inputs(delays, [1.0] * 16)


def test_non_finite_amplitudes_rejected():
    amps = [1.0] * 16
    amps[4] = float('nan')
    with pytest.raises(ConfigurationError):
        TileConfig.from_inputs([0] * 16, amps)


def test_terminated_dipole():
    """Delay 32 zeroes both gains of that dipole and resets its delay."""
    delays = [3] * 16
    delays[5] = 32
    tile = TileConfig.from_inputs(delays, [1.0] * 32)

    assert tile.delays[5] == 0
    assert tile.delays[4] == 3
    assert tile.amps_xy[0, 5] == 0.0
    assert tile.amps_xy[1, 5] == 0.0
    assert np.count_nonzero(tile.amps_xy) == 30


def test_tile_config_is_hashable():
    tile = TileConfig.from_inputs([1] * 16, [0.5] * 16)
    assert {tile: 'x'}[TileConfig.from_inputs([1] * 16, [0.5] * 32)] == 'x'


def test_dipole_weights():
    delays = np.arange(16)
    amps = np.concatenate([np.ones(16), 2 * np.ones(16)])
    tile = TileConfig.from_inputs(delays, amps)
    freq = 51200000

    weights = dipole_weights(tile, freq)
    expected_phase = np.exp(-2j * np.pi * freq * delays * DELAY_STEP_SECONDS)

    assert weights.shape == (2, 16)
    np.testing.assert_allclose(weights[0], expected_phase)
    np.testing.assert_allclose(weights[1], 2 * expected_phase)


def test_zero_delays_give_real_weights():
    weights = dipole_weights(TileConfig.from_inputs([0] * 16, [0.3] * 16), 150e6)
    np.testing.assert_allclose(weights, 0.3)
