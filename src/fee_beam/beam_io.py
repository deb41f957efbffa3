"""
File input/output for FEE coefficient models.

Two containers are supported. Both use the same names:
    - HDF5 (.h5, .hdf5), the layout of the MWA FEE model file
    - NumPy archives (.npz) with a JSON metadata entry

Datasets:
    modes             int, shape (3, Lmax): rows s, m, n
    X{d}_{freq}       float, shape (2, L): amplitude, phase in degrees
    Y{d}_{freq}       as above, for the north-south dipoles

Dipoles d run from 1 to 16. A dipole uses the first L columns of
``modes``. Columns with s <= 1 are Q1 coefficients and the rest are Q2.
"""

import json
import logging
import h5py
import numpy as np
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .coefficients import POLARIZATIONS, CoefficientSet, CoefficientTable
from .errors import MalformedModelError, ModelFileNotFoundError, UnsupportedVersionError
from .utilities import NUM_DIPOLES

# Configure logging
logger = logging.getLogger(__name__)

SUPPORTED_VERSIONS = ('1',)
NPZ_FORMAT = 'MWA FEE NPZ'
HDF5_SUFFIXES = ('.h5', '.hdf5')


def read_model(file_path: Union[str, Path]) -> CoefficientTable:
    """
    Read a coefficient model from an HDF5 or NPZ file.

    Args:
        file_path: Path to the model file

    Returns:
        CoefficientTable holding every tabulated frequency

    Raises:
        ModelFileNotFoundError: If the file does not exist
        MalformedModelError: If the content is missing or inconsistent
        UnsupportedVersionError: If the format or version is unknown
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise ModelFileNotFoundError(f"Model file not found: {file_path}")

    suffix = file_path.suffix.lower()
    if suffix in HDF5_SUFFIXES:
        table = _read_hdf5(file_path)
    elif suffix == '.npz':
        table = _read_npz(file_path)
    else:
        raise UnsupportedVersionError(f"Unsupported model file format: '{suffix}'")

    logger.info(f"Loaded FEE model {file_path.name}: {len(table)} frequencies "
                f"({table.frequencies[0]}-{table.frequencies[-1]} Hz)")
    return table


def _read_hdf5(file_path: Path) -> CoefficientTable:
    try:
        h5f = h5py.File(file_path, 'r')
    except OSError as e:
        raise MalformedModelError(f"Cannot open HDF5 model {file_path}: {e}") from e

    with h5f:
        version = h5f.attrs.get('version')
        if isinstance(version, bytes):
            version = version.decode('utf-8')
        _check_version(version, file_path)
        return _parse_model(h5f, file_path)


def _read_npz(file_path: Path) -> CoefficientTable:
    try:
        npz = np.load(file_path, allow_pickle=False)
    except (OSError, ValueError) as e:
        raise MalformedModelError(f"Cannot open NPZ model {file_path}: {e}") from e

    with npz:
        metadata = {}
        if 'metadata' in npz.files:
            try:
                metadata = json.loads(str(npz['metadata']))
            except json.JSONDecodeError as e:
                raise MalformedModelError(f"Invalid metadata in {file_path}: {e}") from e

        fmt = metadata.get('format', NPZ_FORMAT)
        if fmt != NPZ_FORMAT:
            raise UnsupportedVersionError(f"Unsupported NPZ format '{fmt}' in {file_path}")
        _check_version(metadata.get('version'), file_path)
        return _parse_model(npz, file_path)


def _check_version(version: Optional[Any], file_path: Path) -> None:
    if version is None:
        return
    if str(version) not in SUPPORTED_VERSIONS:
        raise UnsupportedVersionError(
            f"Unsupported model version '{version}' in {file_path}; "
            f"supported versions: {', '.join(SUPPORTED_VERSIONS)}"
        )


def _read_array(source, name: str) -> np.ndarray:
    return np.asarray(source[name][()])


def _parse_model(source, file_path: Path) -> CoefficientTable:
    """Build a CoefficientTable from an open HDF5 file or NPZ archive."""
    names = set(source.keys())
    if 'modes' not in names:
        raise MalformedModelError(f"Model {file_path} has no 'modes' dataset")

    modes = _read_array(source, 'modes')
    if modes.ndim != 2 or modes.shape[0] != 3:
        raise MalformedModelError(f"'modes' must have shape (3, L), got {modes.shape}")
    modes = modes.astype(int)

    freqs = []
    for name in names:
        if name.startswith('X1_'):
            try:
                freqs.append(int(name[3:]))
            except ValueError:
                raise MalformedModelError(f"Cannot parse frequency from dataset '{name}'") from None
    if not freqs:
        raise MalformedModelError(f"Model {file_path} contains no frequencies")

    sets = {}
    for freq in sorted(freqs):
        sets[freq] = _parse_frequency(source, names, modes, freq)
    return CoefficientTable(sets)


def _parse_frequency(source, names, modes: np.ndarray, freq: int) -> CoefficientSet:
    lists = {}
    longest = None
    for pol in POLARIZATIONS:
        for dipole in range(1, NUM_DIPOLES + 1):
            name = f'{pol}{dipole}_{freq}'
            if name not in names:
                raise MalformedModelError(f"Missing dataset '{name}'")
            m, n, q1, q2 = _parse_dipole(name, _read_array(source, name), modes)
            lists[pol, dipole] = (m, n, q1, q2)
            if longest is None or len(m) > len(longest[0]):
                longest = (m, n)

    m_all, n_all = longest
    n_modes = len(m_all)
    q1_all = np.zeros((len(POLARIZATIONS), NUM_DIPOLES, n_modes), dtype=complex)
    q2_all = np.zeros_like(q1_all)
    for (pol, dipole), (m, n, q1, q2) in lists.items():
        size = len(m)
        if not (np.array_equal(m, m_all[:size]) and np.array_equal(n, n_all[:size])):
            raise MalformedModelError(
                f"Mode order of '{pol}{dipole}_{freq}' is not a prefix of the longest mode list"
            )
        p = POLARIZATIONS.index(pol)
        q1_all[p, dipole - 1, :size] = q1
        q2_all[p, dipole - 1, :size] = q2

    return CoefficientSet(freq, q1_all, q2_all, m_all, n_all)


def _parse_dipole(name: str, values: np.ndarray, modes: np.ndarray):
    if values.ndim != 2 or values.shape[0] != 2 or values.shape[1] == 0:
        raise MalformedModelError(f"Dataset '{name}' must have shape (2, L), got {values.shape}")
    size = values.shape[1]
    if size > modes.shape[1]:
        raise MalformedModelError(
            f"Dataset '{name}' has {size} coefficients but 'modes' only lists {modes.shape[1]}"
        )
    if not np.all(np.isfinite(values)):
        raise MalformedModelError(f"Dataset '{name}' contains non-finite values")

    s = modes[0, :size]
    s1 = s <= 1
    s2 = ~s1
    if np.count_nonzero(s1) != np.count_nonzero(s2):
        raise MalformedModelError(f"Dataset '{name}' has unequal numbers of s=1 and s=2 modes")

    m = modes[1, :size][s1]
    n = modes[2, :size][s1]
    if not (np.array_equal(m, modes[1, :size][s2]) and np.array_equal(n, modes[2, :size][s2])):
        raise MalformedModelError(f"s=1 and s=2 modes of '{name}' do not pair up")
    if np.any(n < 1) or np.any(np.abs(m) > n):
        raise MalformedModelError(f"Dataset '{name}' uses invalid mode indices")

    coeffs = values[0] * np.exp(1j * np.deg2rad(values[1]))
    return m, n, coeffs[s1], coeffs[s2]


def write_model_hdf5(model: Dict[str, np.ndarray], file_path: Union[str, Path], version: str = '1') -> None:
    """
    Write a model dictionary (see create_synthetic_model) to HDF5.

    Args:
        model: Mapping of dataset name to array
        file_path: Output path
        version: Version attribute stored on the file
    """
    file_path = Path(file_path)
    with h5py.File(file_path, 'w') as h5f:
        h5f.attrs['version'] = version
        for name, values in model.items():
            h5f.create_dataset(name, data=np.asarray(values))
    logger.info(f"Wrote FEE model to {file_path}")


def save_model_npz(
    model: Dict[str, np.ndarray],
    file_path: Union[str, Path],
    metadata: Optional[Dict[str, Any]] = None
) -> None:
    """
    Save a model dictionary to NPZ format.

    Args:
        model: Mapping of dataset name to array
        file_path: Output path, '.npz' is appended if missing
        metadata: Optional extra metadata entries
    """
    file_path = Path(file_path)
    if file_path.suffix.lower() != '.npz':
        file_path = file_path.with_suffix('.npz')

    meta_dict = {
        'version': SUPPORTED_VERSIONS[-1],
        'format': NPZ_FORMAT,
    }
    if metadata:
        meta_dict.update(metadata)

    save_dict = {name: np.asarray(values) for name, values in model.items()}
    save_dict['metadata'] = json.dumps(meta_dict)
    np.savez_compressed(file_path, **save_dict)
    logger.info(f"Saved FEE model to {file_path}")
