"""
Tabulated spherical-wave coefficients of the 32 tile dipoles.
"""

import logging
import numpy as np
import xarray as xr
from typing import Dict, Iterator, List, NamedTuple

from .errors import ConfigurationError, MalformedModelError
from .spherical_expansion import ModeSeries, prepare_mode_series
from .utilities import NUM_DIPOLES, find_nearest

logger = logging.getLogger(__name__)

POLARIZATIONS = ('X', 'Y')


class CombinedCoefficients(NamedTuple):
    """Coefficients of a whole tile for one frequency and tile configuration."""
    freq_hz: int
    x: ModeSeries
    y: ModeSeries


class CoefficientSet:
    """
    Mode coefficients of every dipole at a single tabulated frequency.

    Data is held in an xarray Dataset with dimensions (pol, dipole, mode).
    Dipoles with fewer modes than the longest list are zero-padded.
    """

    def __init__(self, freq_hz: int, q1: np.ndarray, q2: np.ndarray, m: np.ndarray, n: np.ndarray):
        """
        Args:
            freq_hz: Tabulated frequency in Hz
            q1: s=1 coefficients, shape (2, 16, L)
            q2: s=2 coefficients, shape (2, 16, L)
            m: Mode orders, shape (L,)
            n: Mode degrees, shape (L,)

        Raises:
            MalformedModelError: If array shapes are inconsistent
        """
        q1 = np.asarray(q1, dtype=complex)
        q2 = np.asarray(q2, dtype=complex)
        m = np.asarray(m, dtype=int)
        n = np.asarray(n, dtype=int)

        expected = (len(POLARIZATIONS), NUM_DIPOLES, len(m))
        if q1.shape != expected or q2.shape != expected:
            raise MalformedModelError(
                f"Coefficient arrays at {freq_hz} Hz must have shape {expected}, "
                f"got {q1.shape} and {q2.shape}"
            )
        if len(n) != len(m) or len(m) == 0:
            raise MalformedModelError(f"Mode index arrays at {freq_hz} Hz are empty or mismatched")

        self.data = xr.Dataset(
            data_vars={
                'q1': (('pol', 'dipole', 'mode'), q1),
                'q2': (('pol', 'dipole', 'mode'), q2),
            },
            coords={
                'pol': list(POLARIZATIONS),
                'dipole': np.arange(1, NUM_DIPOLES + 1),
                'm': ('mode', m),
                'n': ('mode', n),
            },
            attrs={
                'freq_hz': int(freq_hz),
                'n_max': int(n.max()),
            }
        )

    @property
    def freq_hz(self) -> int:
        return self.data.attrs['freq_hz']

    @property
    def n_max(self) -> int:
        return self.data.attrs['n_max']

    @property
    def num_modes(self) -> int:
        return self.data.sizes['mode']

    def combine(self, weights: np.ndarray) -> CombinedCoefficients:
        """
        Sum the dipole coefficients with complex beamforming weights.

        Args:
            weights: Complex weights, shape (2, 16), rows X and Y

        Returns:
            CombinedCoefficients for this frequency
        """
        weights = np.asarray(weights, dtype=complex)
        if weights.shape != (len(POLARIZATIONS), NUM_DIPOLES):
            raise ConfigurationError(f"Dipole weights must have shape (2, 16), got {weights.shape}")

        m = self.data.m.values
        n = self.data.n.values
        q1 = np.einsum('pd,pdl->pl', weights, self.data.q1.values)
        q2 = np.einsum('pd,pdl->pl', weights, self.data.q2.values)

        return CombinedCoefficients(
            freq_hz=self.freq_hz,
            x=prepare_mode_series(q1[0], q2[0], m, n),
            y=prepare_mode_series(q1[1], q2[1], m, n),
        )

    def __repr__(self):
        return f"CoefficientSet(freq_hz={self.freq_hz}, modes={self.num_modes}, n_max={self.n_max})"


class CoefficientTable:
    """Read-only mapping of tabulated frequency to CoefficientSet."""

    def __init__(self, sets: Dict[int, CoefficientSet]):
        if not sets:
            raise MalformedModelError("Coefficient table contains no frequencies")
        self._sets = {int(freq): sets[freq] for freq in sorted(sets)}
        self._freqs = np.array(list(self._sets), dtype=np.int64)

    @property
    def frequencies(self) -> List[int]:
        """Tabulated frequencies in Hz, ascending."""
        return [int(f) for f in self._freqs]

    def closest_freq(self, freq_hz: float) -> int:
        """
        Nearest tabulated frequency. Exact ties go to the lower frequency.

        Raises:
            ConfigurationError: If freq_hz is not a positive finite number
        """
        try:
            freq = float(freq_hz)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Frequency must be a number, got {freq_hz!r}") from None
        if not np.isfinite(freq) or freq <= 0:
            raise ConfigurationError(f"Frequency must be positive and finite, got {freq_hz}")
        nearest, _ = find_nearest(self._freqs, freq)
        return int(nearest)

    def lookup(self, freq_hz: float) -> CoefficientSet:
        """CoefficientSet of the nearest tabulated frequency."""
        return self._sets[self.closest_freq(freq_hz)]

    def __len__(self):
        return len(self._sets)

    def __contains__(self, freq_hz):
        return freq_hz in self._sets

    def __iter__(self) -> Iterator[CoefficientSet]:
        return iter(self._sets.values())

    def __repr__(self):
        return (f"CoefficientTable({len(self)} frequencies, "
                f"{self.frequencies[0]}-{self.frequencies[-1]} Hz)")
