"""
Common constants and utility functions for MWA tile beam calculations.
"""
import math
import numpy as np
from typing import Tuple, Union, List, Sequence, Dict

# Instrument constants
NUM_DIPOLES = 16
DELAY_STEP_SECONDS = 435e-12  # Beamformer delay quantum (s)
TERMINATED_DELAY = 32  # Delay setting that marks a dead dipole
MWA_LATITUDE_RAD = -0.4660608448386394  # MWA site latitude (rad)

# Azimuths (rad) at which each zenith Jones entry peaks; rows X, Y
ZENITH_NORM_AZIMUTHS = ((math.pi / 2, math.pi), (0.0, math.pi / 2))

# Boundary layer
ERROR_MESSAGE_LENGTH = 200
BEAM_FILE_ENV_VAR = 'MWA_BEAM_FILE'

# Batch evaluation
DEFAULT_CHUNK_SIZE = 4096

# Type aliases
NumericArray = Union[np.ndarray, List[float], List[int], Tuple[float, ...], Tuple[int, ...]]


def find_nearest(array: NumericArray, value: float) -> Tuple[Union[float, np.ndarray], Union[int, np.ndarray]]:
    """
    Find the value in an array that is closest to a specified value and its index.

    Ties resolve to the first occurrence, so for a sorted array the lower
    of two equidistant values wins.

    Args:
        array: Array-like collection of numeric values
        value: Target value to find the nearest element to

    Returns:
        Tuple containing (nearest_value, index_of_nearest_value)

    Raises:
        ValueError: If input array is empty
    """
    array = np.asarray(array)

    if array.size == 0:
        raise ValueError("Input array is empty")

    idx = np.abs(array - value).argmin()
    return array[idx], idx


def feko_modes(n_max: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Mode indices in FEKO order: n = 1..n_max, and m = -n..n within each n.

    Returns:
        Tuple of (m, n) integer arrays of length n_max * (n_max + 2)
    """
    m_list = []
    n_list = []
    for n in range(1, n_max + 1):
        for m in range(-n, n + 1):
            m_list.append(m)
            n_list.append(n)
    return np.array(m_list, dtype=int), np.array(n_list, dtype=int)


def create_synthetic_model(
    frequencies: Sequence[int],
    n_max: int = 3,
    perturbation: float = 0.05,
    seed: int = 42
) -> Dict[str, np.ndarray]:
    """
    Create a synthetic FEE coefficient model for testing and examples.

    The dominant terms are the n=1, m=+-1 s=2 modes, combined so that
    every X dipole radiates like a short east-west dipole and every Y
    dipole like a north-south one. Small seeded perturbations on all
    other modes make the dipoles distinct from each other.

    Args:
        frequencies: Tabulated frequencies in Hz
        n_max: Highest mode degree
        perturbation: Scale of the random perturbations
        seed: Random seed

    Returns:
        Dictionary laid out like the HDF5 model file: 'modes' of shape
        (3, 2 * L) with rows (s, m, n), and 'X{d}_{freq}' / 'Y{d}_{freq}'
        arrays of shape (2, 2 * L) holding amplitude and phase in degrees.
    """
    rng = np.random.default_rng(seed)
    m, n = feko_modes(n_max)
    n_modes = len(m)

    # Interleave s=1 and s=2 entries for every (m, n)
    modes = np.zeros((3, 2 * n_modes), dtype=int)
    modes[0, 0::2] = 1
    modes[0, 1::2] = 2
    modes[1, 0::2] = m
    modes[1, 1::2] = m
    modes[2, 0::2] = n
    modes[2, 1::2] = n

    m_plus = np.flatnonzero((m == 1) & (n == 1))[0]
    m_minus = np.flatnonzero((m == -1) & (n == 1))[0]

    model = {'modes': modes}
    for freq in frequencies:
        freq = int(freq)
        scale = freq / 1e8
        for pol in ('X', 'Y'):
            for dipole in range(1, NUM_DIPOLES + 1):
                q1 = perturbation * (rng.standard_normal(n_modes) + 1j * rng.standard_normal(n_modes))
                q2 = perturbation * (rng.standard_normal(n_modes) + 1j * rng.standard_normal(n_modes))
                if pol == 'X':
                    q2[m_plus] += scale
                    q2[m_minus] -= scale
                else:
                    q2[m_plus] += 1j * scale
                    q2[m_minus] += 1j * scale

                coeffs = np.empty(2 * n_modes, dtype=complex)
                coeffs[0::2] = q1
                coeffs[1::2] = q2
                model[f'{pol}{dipole}_{freq}'] = np.vstack([np.abs(coeffs), np.degrees(np.angle(coeffs))])
    return model
