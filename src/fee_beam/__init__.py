"""
fee_beam package - MWA full-embedded-element tile beam model.

This package loads the tabulated spherical-wave coefficients of the MWA tile
dipoles and evaluates polarised beam responses as 2x2 Jones matrices for any
direction, frequency and beamformer setting.
"""

__version__ = '0.1.0'
__author__ = 'Justin Long'
__email__ = 'justinwlong1@gmail.com'

# Import key classes and functions to make them available at the package level
from .beam import FEEBeam, BatchRequest
from .array_factor import TileConfig, dipole_weights
from .coefficients import CoefficientSet, CoefficientTable, CombinedCoefficients
from .beam_io import (
    read_model,
    write_model_hdf5,
    save_model_npz
)
from .cache import CoefficientCache
from .dispatch import BatchDispatcher
from .spherical_expansion import (
    normalized_legendre_table,
    mode_legendre_terms,
    calc_sigmas
)
from .jones import (
    assemble_jones,
    evaluate_jones,
    calc_zenith_norm_factors,
    apply_zenith_norm
)
from .polarization import (
    azel_to_hadec,
    parallactic_angle,
    apply_parallactic_correction,
    reorder_iau
)
from .boundary import (
    BeamHandle,
    BoundaryResult,
    new_beam,
    new_beam_from_env,
    free_beam,
    compute_jones_batch,
    closest_freq,
    get_beam_freqs
)
from .errors import (
    FEEBeamError,
    ModelLoadError,
    ModelFileNotFoundError,
    MalformedModelError,
    UnsupportedVersionError,
    ConfigurationError,
    InvalidAmplitudeLengthError,
    InvalidDelayError,
    EmptyInputError,
    ComputationError,
    SingularZenithResponseError,
    NonFiniteResponseError,
    ResourceError,
    BeamReleasedError
)
from .plotting import (
    instrumental_power,
    plot_beam_response,
    plot_jones_elements
)
from .utilities import (
    find_nearest,
    create_synthetic_model,
    MWA_LATITUDE_RAD,
    DELAY_STEP_SECONDS,
    BEAM_FILE_ENV_VAR
)

__all__ = [
    'FEEBeam', 'BatchRequest', 'TileConfig', 'dipole_weights',
    'CoefficientSet', 'CoefficientTable', 'CombinedCoefficients',
    'read_model', 'write_model_hdf5', 'save_model_npz',
    'CoefficientCache', 'BatchDispatcher',
    'normalized_legendre_table', 'mode_legendre_terms', 'calc_sigmas',
    'assemble_jones', 'evaluate_jones', 'calc_zenith_norm_factors', 'apply_zenith_norm',
    'azel_to_hadec', 'parallactic_angle', 'apply_parallactic_correction', 'reorder_iau',
    'BeamHandle', 'BoundaryResult', 'new_beam', 'new_beam_from_env', 'free_beam',
    'compute_jones_batch', 'closest_freq', 'get_beam_freqs',
    'FEEBeamError', 'ModelLoadError', 'ModelFileNotFoundError', 'MalformedModelError',
    'UnsupportedVersionError', 'ConfigurationError', 'InvalidAmplitudeLengthError',
    'InvalidDelayError', 'EmptyInputError', 'ComputationError',
    'SingularZenithResponseError', 'NonFiniteResponseError', 'ResourceError',
    'BeamReleasedError',
    'instrumental_power', 'plot_beam_response', 'plot_jones_elements',
    'find_nearest', 'create_synthetic_model', 'MWA_LATITUDE_RAD',
    'DELAY_STEP_SECONDS', 'BEAM_FILE_ENV_VAR',
]
