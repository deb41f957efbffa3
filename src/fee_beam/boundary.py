"""
Flat, non-raising interface for foreign-language callers.

Every function returns a BoundaryResult. On failure ``value`` is None and
``error`` holds a message of at most ERROR_MESSAGE_LENGTH bytes. When the
caller passes a bytearray as ``error_buffer`` the message is also copied
into it as NUL-terminated UTF-8, the convention of C callers that own a
fixed-size message buffer.
"""

import logging
import numpy as np
from typing import Any, NamedTuple, Optional, Sequence

from .beam import FEEBeam
from .errors import BeamReleasedError, ConfigurationError, FEEBeamError
from .utilities import ERROR_MESSAGE_LENGTH, MWA_LATITUDE_RAD

logger = logging.getLogger(__name__)


class BoundaryResult(NamedTuple):
    value: Any
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BeamHandle:
    """Opaque owner of an FEEBeam handed out by new_beam."""

    def __init__(self, beam: FEEBeam):
        self._beam = beam

    @property
    def freed(self) -> bool:
        return self._beam is None

    @property
    def beam(self) -> FEEBeam:
        if self._beam is None:
            raise BeamReleasedError("beam handle has been released")
        return self._beam

    def free(self) -> bool:
        """Release the beam. Returns False if it was already released."""
        if self._beam is None:
            return False
        beam, self._beam = self._beam, None
        beam.release()
        return True

    def __repr__(self):
        return f"BeamHandle({'freed' if self.freed else self._beam.file_path})"


def truncate_message(message: str, limit: int = ERROR_MESSAGE_LENGTH) -> str:
    """Shorten a message so its UTF-8 encoding plus a NUL fits in ``limit`` bytes."""
    encoded = message.encode('utf-8')
    if len(encoded) < limit:
        return message
    return encoded[:limit - 1].decode('utf-8', errors='ignore')


def write_error(error_buffer: Optional[bytearray], message: str) -> None:
    """Copy a NUL-terminated message into a caller-owned buffer, if any."""
    if error_buffer is None or len(error_buffer) == 0:
        return
    encoded = message.encode('utf-8')[:len(error_buffer) - 1]
    error_buffer[:len(encoded)] = encoded
    error_buffer[len(encoded)] = 0


def _failure(exc: BaseException, error_buffer: Optional[bytearray], operation: str) -> BoundaryResult:
    if isinstance(exc, FEEBeamError):
        message = str(exc)
    else:
        message = f"unexpected error: {type(exc).__name__}: {exc}"
    logger.error(f"{operation} failed: {message}")
    message = truncate_message(message)
    write_error(error_buffer, message)
    return BoundaryResult(None, message)


def _get_beam(handle: BeamHandle) -> FEEBeam:
    if not isinstance(handle, BeamHandle):
        raise ConfigurationError(f"invalid beam handle: {handle!r}")
    return handle.beam


# ============================================================================
# Lifecycle
# ============================================================================

def new_beam(path: str, error_buffer: Optional[bytearray] = None) -> BoundaryResult:
    """Load a beam model. ``value`` is a BeamHandle."""
    try:
        return BoundaryResult(BeamHandle(FEEBeam(path)))
    except Exception as e:
        return _failure(e, error_buffer, 'new_beam')


def new_beam_from_env(error_buffer: Optional[bytearray] = None) -> BoundaryResult:
    """Load the beam model named by MWA_BEAM_FILE. ``value`` is a BeamHandle."""
    try:
        return BoundaryResult(BeamHandle(FEEBeam.from_env()))
    except Exception as e:
        return _failure(e, error_buffer, 'new_beam_from_env')


def free_beam(handle: Optional[BeamHandle]) -> None:
    """Release a beam handle. Freeing twice, or freeing None, does nothing."""
    if handle is None:
        return
    if not handle.free():
        logger.warning("free_beam called on an already released handle")


# ============================================================================
# Queries
# ============================================================================

def compute_jones_batch(handle: BeamHandle,
                        directions: Sequence[Sequence[float]],
                        frequency_hz: float,
                        delays: Sequence[int],
                        amplitudes: Sequence[float],
                        normalize_to_zenith: bool,
                        apply_parallactic: bool,
                        error_buffer: Optional[bytearray] = None,
                        iau_order: bool = False) -> BoundaryResult:
    """
    Jones matrices for a batch of (azimuth, zenith angle) pairs in radians.

    ``value`` is a complex array of shape (N, 2, 2), in input order. The
    parallactic correction uses the MWA site latitude.
    """
    try:
        beam = _get_beam(handle)
        dirs = np.asarray(directions, dtype=float)
        if dirs.size == 0:
            dirs = dirs.reshape(0, 2)
        if dirs.ndim != 2 or dirs.shape[1] != 2:
            raise ConfigurationError(f"directions must have shape (N, 2), got {dirs.shape}")
        latitude = MWA_LATITUDE_RAD if apply_parallactic else None
        jones = beam.calc_jones_array(dirs[:, 0], dirs[:, 1], frequency_hz, delays, amplitudes,
                                      norm_to_zenith=normalize_to_zenith,
                                      latitude_rad=latitude, iau_order=iau_order)
        return BoundaryResult(jones)
    except Exception as e:
        return _failure(e, error_buffer, 'compute_jones_batch')


def closest_freq(handle: BeamHandle, freq_hz: float,
                 error_buffer: Optional[bytearray] = None) -> BoundaryResult:
    """Tabulated frequency nearest to freq_hz."""
    try:
        return BoundaryResult(_get_beam(handle).closest_freq(freq_hz))
    except Exception as e:
        return _failure(e, error_buffer, 'closest_freq')


def get_beam_freqs(handle: BeamHandle, error_buffer: Optional[bytearray] = None) -> BoundaryResult:
    """All tabulated frequencies, ascending."""
    try:
        return BoundaryResult(_get_beam(handle).frequencies)
    except Exception as e:
        return _failure(e, error_buffer, 'get_beam_freqs')
