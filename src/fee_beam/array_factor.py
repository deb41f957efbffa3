"""
Beamformer settings of a tile and the complex dipole weights they produce.
"""

import logging
import numpy as np
from typing import NamedTuple, Sequence, Tuple

from .errors import ConfigurationError, InvalidAmplitudeLengthError, InvalidDelayError
from .utilities import DELAY_STEP_SECONDS, NUM_DIPOLES, TERMINATED_DELAY

logger = logging.getLogger(__name__)


class TileConfig(NamedTuple):
    """
    Normalised beamformer settings.

    delays holds 16 integer delay steps. amps holds 32 gains, the 16 X
    (east-west) dipoles followed by the 16 Y (north-south) dipoles.
    Terminated dipoles are already folded in: delay 0, both gains 0.
    The tuple is hashable and used as part of cache keys.
    """
    delays: Tuple[int, ...]
    amps: Tuple[float, ...]

    @classmethod
    def from_inputs(cls, delays: Sequence[int], amps: Sequence[float] = None) -> 'TileConfig':
        """
        Validate and normalise raw delays and amplitudes.

        Args:
            delays: 16 delay steps, integers in 0..32. 32 terminates a dipole.
            amps: 16 gains shared by both polarisations, or 32 gains
                  (X then Y). Defaults to all ones.

        Returns:
            TileConfig

        Raises:
            InvalidDelayError: Wrong number of delays or a value outside 0..32
            InvalidAmplitudeLengthError: amps does not have 16 or 32 entries
            ConfigurationError: A gain is not finite
        """
        delay_arr = np.asarray(delays).ravel()
        if delay_arr.size != NUM_DIPOLES:
            raise InvalidDelayError(f"Expected {NUM_DIPOLES} delays, got {delay_arr.size}")
        try:
            delay_float = delay_arr.astype(float)
        except (TypeError, ValueError):
            raise InvalidDelayError(f"Delays must be integers, got {list(delay_arr)}") from None
        if np.any(delay_float != np.round(delay_float)):
            raise InvalidDelayError(f"Delays must be integers, got {list(delay_arr)}")
        delay_int = delay_float.astype(int)
        if np.any(delay_int < 0) or np.any(delay_int > TERMINATED_DELAY):
            raise InvalidDelayError(
                f"Delays must be in 0..{TERMINATED_DELAY}, got {delay_int.tolist()}"
            )

        if amps is None:
            amp_arr = np.ones(2 * NUM_DIPOLES)
        else:
            amp_arr = np.asarray(amps, dtype=float).ravel()
            if amp_arr.size == NUM_DIPOLES:
                amp_arr = np.concatenate([amp_arr, amp_arr])
            elif amp_arr.size != 2 * NUM_DIPOLES:
                raise InvalidAmplitudeLengthError(
                    f"Amplitude vector length must be {NUM_DIPOLES} or {2 * NUM_DIPOLES}, "
                    f"got {amp_arr.size}"
                )
        if not np.all(np.isfinite(amp_arr)):
            raise ConfigurationError("Amplitudes must be finite")

        terminated = delay_int == TERMINATED_DELAY
        if terminated.any():
            logger.warning(f"Terminated dipoles (delay {TERMINATED_DELAY}) at indices "
                           f"{np.flatnonzero(terminated).tolist()}: setting amplitude and delay to zero")
            delay_int = np.where(terminated, 0, delay_int)
            amp_arr = amp_arr.copy()
            amp_arr[:NUM_DIPOLES][terminated] = 0.0
            amp_arr[NUM_DIPOLES:][terminated] = 0.0

        return cls(
            delays=tuple(int(d) for d in delay_int),
            amps=tuple(float(a) for a in amp_arr),
        )

    @property
    def amps_xy(self) -> np.ndarray:
        """Gains as a (2, 16) array, rows X and Y."""
        return np.asarray(self.amps).reshape(2, NUM_DIPOLES)


def dipole_weights(tile: TileConfig, freq_hz: float) -> np.ndarray:
    """
    Complex excitation of every dipole.

        w[p, d] = amps[p, d] * exp(-i * 2 pi * freq_hz * delays[d] * 435 ps)

    Args:
        tile: Normalised beamformer settings
        freq_hz: Frequency in Hz (the tabulated one the coefficients belong to)

    Returns:
        Complex array of shape (2, 16), rows X and Y
    """
    phases = 2 * np.pi * freq_hz * (-np.asarray(tile.delays, dtype=float)) * DELAY_STEP_SECONDS
    return tile.amps_xy * np.exp(1j * phases)[np.newaxis, :]
