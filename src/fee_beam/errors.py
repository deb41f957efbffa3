"""
Exception hierarchy for FEE beam calculations.

All package errors derive from FEEBeamError. Most also subclass the builtin
exception that matches their meaning, so callers that only know about
FileNotFoundError or ValueError keep working.
"""


class FEEBeamError(Exception):
    """Base class for all FEE beam errors."""


# ============================================================================
# Model loading
# ============================================================================

class ModelLoadError(FEEBeamError):
    """The coefficient model could not be loaded."""


class ModelFileNotFoundError(ModelLoadError, FileNotFoundError):
    """The model file does not exist."""


class MalformedModelError(ModelLoadError, ValueError):
    """The model file is missing data or has an inconsistent layout."""


class UnsupportedVersionError(ModelLoadError, ValueError):
    """The model file declares a format or version this package cannot read."""


# ============================================================================
# Request validation
# ============================================================================

class ConfigurationError(FEEBeamError, ValueError):
    """A request parameter is out of range or inconsistent."""


class InvalidAmplitudeLengthError(ConfigurationError):
    """The amplitude vector does not have 16 or 32 entries."""


class InvalidDelayError(ConfigurationError):
    """A delay is not an integer in 0..32, or there are not 16 of them."""


class EmptyInputError(ConfigurationError):
    """No directions were supplied."""


# ============================================================================
# Numerical failures
# ============================================================================

class ComputationError(FEEBeamError, ArithmeticError):
    """A numerical step produced an unusable result."""


class SingularZenithResponseError(ComputationError):
    """A zenith normalisation factor is zero or not finite."""


class NonFiniteResponseError(ComputationError):
    """The evaluated Jones matrices contain NaN or infinite values."""


# ============================================================================
# Resources and lifecycle
# ============================================================================

class ResourceError(FEEBeamError, MemoryError):
    """Output or workspace memory could not be allocated."""


class BeamReleasedError(FEEBeamError, RuntimeError):
    """The beam was used after release."""
