"""
Core class for MWA full-embedded-element tile beam calculations.
"""
import os
import logging
import numpy as np
import xarray as xr
from pathlib import Path
from typing import Optional, Union, Sequence, List, NamedTuple

from .array_factor import TileConfig, dipole_weights
from .beam_io import read_model
from .cache import CoefficientCache
from .coefficients import CombinedCoefficients, CoefficientTable
from .dispatch import BatchDispatcher
from .errors import (
    BeamReleasedError, ConfigurationError, EmptyInputError, NonFiniteResponseError
)
from .jones import apply_zenith_norm, calc_zenith_norm_factors, evaluate_jones
from .polarization import apply_parallactic_correction, reorder_iau
from .utilities import BEAM_FILE_ENV_VAR, DEFAULT_CHUNK_SIZE

# Configure logging
logger = logging.getLogger(__name__)


class BatchRequest(NamedTuple):
    """A validated beam evaluation request."""
    az_rad: np.ndarray
    za_rad: np.ndarray
    freq_hz: float
    tile: TileConfig
    norm_to_zenith: bool = False
    latitude_rad: Optional[float] = None
    iau_order: bool = False


class FEEBeam:
    """
    The MWA full-embedded-element beam model.

    Loads the tabulated spherical-wave coefficients once and evaluates 2x2
    Jones matrices for any directions, frequency and beamformer setting.
    Combined coefficients and zenith normalisation factors are cached per
    (frequency, delays, amplitudes), and batches run on a thread pool.

    A beam may be shared between threads. Once released it refuses all
    further calls.

    Example:
        with FEEBeam("mwa_full_embedded_element_pattern.h5") as beam:
            jones = beam.calc_jones_array(az, za, 150e6, [0] * 16, [1] * 16,
                                          norm_to_zenith=True)
    """

    def __init__(self,
                 file_path: Optional[Union[str, Path]] = None,
                 max_workers: Optional[int] = None,
                 chunk_size: int = DEFAULT_CHUNK_SIZE,
                 table: Optional[CoefficientTable] = None):
        """
        Args:
            file_path: HDF5 or NPZ coefficient model. If None, the path is
                read from the MWA_BEAM_FILE environment variable.
            max_workers: Thread pool size (None lets the executor decide)
            chunk_size: Directions per work unit
            table: Already loaded coefficients, used instead of file_path

        Raises:
            ConfigurationError: If no path is given and MWA_BEAM_FILE is unset
            ModelLoadError: If the model cannot be read
        """
        if table is None:
            if file_path is None:
                file_path = os.environ.get(BEAM_FILE_ENV_VAR)
                if not file_path:
                    raise ConfigurationError(
                        f"No beam file given and {BEAM_FILE_ENV_VAR} is not set"
                    )
            table = read_model(file_path)

        self.file_path = Path(file_path) if file_path is not None else None
        self._table = table
        self._coeff_cache = CoefficientCache('combined coefficients')
        self._norm_cache = CoefficientCache('zenith normalisation')
        self._dispatcher = BatchDispatcher(max_workers=max_workers, chunk_size=chunk_size)
        self._released = False

    @classmethod
    def from_env(cls, **kwargs) -> 'FEEBeam':
        """Create a beam from the file named by MWA_BEAM_FILE."""
        return cls(file_path=None, **kwargs)

    def __repr__(self):
        state = 'released' if self._released else f'{len(self._table)} frequencies'
        return f"FEEBeam({self.file_path}, {state})"

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.release()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _check_open(self) -> None:
        if self._released:
            raise BeamReleasedError("Beam has been released")

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """
        Free the coefficient table, caches and worker pool.

        Running batches finish first. Releasing twice is a no-op.
        """
        if self._released:
            logger.warning("Beam already released")
            return
        self._released = True
        self._dispatcher.shutdown()
        self._coeff_cache.clear()
        self._norm_cache.clear()
        self._table = None
        logger.info(f"Released beam {self.file_path}")

    close = release

    # ------------------------------------------------------------------
    # Frequencies and caches
    # ------------------------------------------------------------------

    @property
    def frequencies(self) -> List[int]:
        """Tabulated frequencies in Hz."""
        self._check_open()
        return self._table.frequencies

    def closest_freq(self, freq_hz: float) -> int:
        """Tabulated frequency that a request at freq_hz would use."""
        self._check_open()
        return self._table.closest_freq(freq_hz)

    @property
    def coefficient_builds(self) -> int:
        return self._coeff_cache.build_count

    @property
    def norm_builds(self) -> int:
        return self._norm_cache.build_count

    def clear_cache(self) -> None:
        self._coeff_cache.clear()
        self._norm_cache.clear()

    def combined_coefficients(self, freq_hz: float, tile: TileConfig) -> CombinedCoefficients:
        """Dipole-summed coefficients for a frequency and tile, cached."""
        self._check_open()
        coeff_set = self._table.lookup(freq_hz)
        key = (coeff_set.freq_hz, tile.delays, tile.amps)

        def build():
            weights = dipole_weights(tile, coeff_set.freq_hz)
            return coeff_set.combine(weights)

        return self._coeff_cache.get_or_compute(key, build)

    def zenith_norm_factors(self, freq_hz: float, tile: TileConfig) -> np.ndarray:
        """Per-entry zenith normalisation factors, shape (2, 2), cached."""
        self._check_open()
        resolved = self._table.closest_freq(freq_hz)
        key = (resolved, tile.delays, tile.amps)
        return self._norm_cache.get_or_compute(
            key, lambda: calc_zenith_norm_factors(self.combined_coefficients(resolved, tile))
        )

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def make_request(self,
                     az_rad: Union[float, Sequence[float], np.ndarray],
                     za_rad: Union[float, Sequence[float], np.ndarray],
                     freq_hz: float,
                     delays: Sequence[int],
                     amps: Optional[Sequence[float]] = None,
                     norm_to_zenith: bool = False,
                     latitude_rad: Optional[float] = None,
                     iau_order: bool = False) -> BatchRequest:
        """
        Validate raw inputs into a BatchRequest.

        Raises:
            EmptyInputError: No directions
            ConfigurationError: Mismatched or non-finite directions, bad
                frequency, latitude, delays or amplitudes
        """
        self._check_open()
        az = np.atleast_1d(np.asarray(az_rad, dtype=float))
        za = np.atleast_1d(np.asarray(za_rad, dtype=float))
        if az.shape != za.shape:
            raise ConfigurationError(
                f"Azimuth (shape {az.shape}) and zenith angle (shape {za.shape}) must be the same shape"
            )
        if az.size == 0:
            raise EmptyInputError("No directions given")
        az = az.ravel()
        za = za.ravel()
        if not (np.all(np.isfinite(az)) and np.all(np.isfinite(za))):
            raise ConfigurationError("Directions must be finite")

        tile = TileConfig.from_inputs(delays, amps)
        self._table.closest_freq(freq_hz)

        if latitude_rad is not None:
            latitude_rad = float(latitude_rad)
            if not np.isfinite(latitude_rad) or abs(latitude_rad) > np.pi / 2:
                raise ConfigurationError(f"Latitude must be within +-pi/2 rad, got {latitude_rad}")
        elif iau_order:
            logger.warning("iau_order only applies with a parallactic correction; ignoring it")
            iau_order = False

        return BatchRequest(az, za, float(freq_hz), tile, bool(norm_to_zenith), latitude_rad, bool(iau_order))

    def compute(self, request: BatchRequest) -> np.ndarray:
        """
        Evaluate a validated request.

        Returns:
            Complex array of shape (N, 2, 2), in the order of the directions

        Raises:
            BeamReleasedError: If the beam was released
            SingularZenithResponseError: If normalisation was requested but a
                zenith factor is zero
            NonFiniteResponseError: If any output is NaN or infinite
            ResourceError: If memory runs out
        """
        self._check_open()
        resolved = self._table.closest_freq(request.freq_hz)
        if resolved != request.freq_hz:
            logger.info(f"Using tabulated frequency {resolved} Hz for requested {request.freq_hz} Hz")

        coeffs = self.combined_coefficients(resolved, request.tile)
        factors = self.zenith_norm_factors(resolved, request.tile) if request.norm_to_zenith else None
        latitude = request.latitude_rad

        def evaluate_chunk(az, za, out):
            evaluate_jones(coeffs, az, za, out=out)
            if factors is not None:
                apply_zenith_norm(out, factors)
            if latitude is not None:
                apply_parallactic_correction(out, az, za, latitude)

        jones = self._dispatcher.run(evaluate_chunk, request.az_rad, request.za_rad)
        if request.iau_order and latitude is not None:
            jones = np.ascontiguousarray(reorder_iau(jones))

        if not np.all(np.isfinite(jones)):
            bad = int(np.count_nonzero(~np.isfinite(jones).all(axis=(1, 2))))
            raise NonFiniteResponseError(f"{bad} of {len(jones)} Jones matrices are not finite")
        return jones

    def calc_jones_array(self,
                         az_rad: Union[Sequence[float], np.ndarray],
                         za_rad: Union[Sequence[float], np.ndarray],
                         freq_hz: float,
                         delays: Sequence[int],
                         amps: Optional[Sequence[float]] = None,
                         norm_to_zenith: bool = False,
                         latitude_rad: Optional[float] = None,
                         iau_order: bool = False) -> np.ndarray:
        """
        Jones matrices for many directions.

        Args:
            az_rad: Azimuths in radians, north through east
            za_rad: Zenith angles in radians
            freq_hz: Frequency in Hz; the nearest tabulated one is used
            delays: 16 beamformer delay steps (0..32, 32 terminates a dipole)
            amps: 16 or 32 dipole gains, default all ones
            norm_to_zenith: Normalise each entry by its zenith response
            latitude_rad: Apply the parallactic correction for this latitude
            iau_order: With latitude_rad, put the north-south dipole first

        Returns:
            Complex array of shape (N, 2, 2)
        """
        self._check_open()
        request = self.make_request(az_rad, za_rad, freq_hz, delays, amps,
                                    norm_to_zenith, latitude_rad, iau_order)
        return self.compute(request)

    def calc_jones(self,
                   az_rad: float,
                   za_rad: float,
                   freq_hz: float,
                   delays: Sequence[int],
                   amps: Optional[Sequence[float]] = None,
                   norm_to_zenith: bool = False,
                   latitude_rad: Optional[float] = None,
                   iau_order: bool = False) -> np.ndarray:
        """Jones matrix for a single direction, shape (2, 2)."""
        return self.calc_jones_array([az_rad], [za_rad], freq_hz, delays, amps,
                                     norm_to_zenith, latitude_rad, iau_order)[0]

    def calc_jones_grid(self,
                        az_deg: np.ndarray,
                        za_deg: np.ndarray,
                        freq_hz: float,
                        delays: Sequence[int],
                        amps: Optional[Sequence[float]] = None,
                        norm_to_zenith: bool = True,
                        latitude_rad: Optional[float] = None,
                        iau_order: bool = False) -> xr.Dataset:
        """
        Jones matrices on an azimuth / zenith-angle grid.

        Args:
            az_deg: 1-D azimuths in degrees
            za_deg: 1-D zenith angles in degrees
            (remaining arguments as calc_jones_array)

        Returns:
            xarray Dataset with variable 'jones', dims (za, az, pol, sky)
        """
        az_deg = np.asarray(az_deg, dtype=float)
        za_deg = np.asarray(za_deg, dtype=float)
        if az_deg.ndim != 1 or za_deg.ndim != 1:
            raise ConfigurationError("Grid azimuths and zenith angles must be 1-D")

        az_grid, za_grid = np.meshgrid(np.radians(az_deg), np.radians(za_deg))
        jones = self.calc_jones_array(az_grid.ravel(), za_grid.ravel(), freq_hz, delays, amps,
                                      norm_to_zenith, latitude_rad, iau_order)
        jones = jones.reshape(len(za_deg), len(az_deg), 2, 2)

        rotated = latitude_rad is not None
        pol = ['Y', 'X'] if (rotated and iau_order) else ['X', 'Y']
        tile = TileConfig.from_inputs(delays, amps)
        return xr.Dataset(
            data_vars={'jones': (('za', 'az', 'pol', 'sky'), jones)},
            coords={'za': za_deg, 'az': az_deg, 'pol': pol},
            attrs={
                'freq_hz': self.closest_freq(freq_hz),
                'requested_freq_hz': float(freq_hz),
                'delays': list(tile.delays),
                'amps': list(tile.amps),
                'norm_to_zenith': int(norm_to_zenith),
                'basis': 'parallactic' if rotated else 'theta-phi',
            }
        )
