"""
Test configuration file for pytest.
This file helps pytest discover the src module and provides a synthetic
FEE model shared by the tests.
"""
import os
import sys

import pytest

# Add the src directory to the path for test discovery
src_path = os.path.abspath(os.path.join(os.path.dirname(__file__), 'src'))
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from fee_beam import FEEBeam, create_synthetic_model, read_model, write_model_hdf5  # noqa: E402

MODEL_FREQS = [49920000, 51200000, 52480000]


@pytest.fixture(scope='session')
def synthetic_model():
    """Dataset dictionary of the synthetic three-frequency model."""
    return create_synthetic_model(MODEL_FREQS, n_max=3, seed=7)


@pytest.fixture(scope='session')
def model_path(tmp_path_factory, synthetic_model):
    """Synthetic model written to an HDF5 file."""
    path = tmp_path_factory.mktemp('model') / 'synthetic_fee.h5'
    write_model_hdf5(synthetic_model, path)
    return path


@pytest.fixture(scope='session')
def model_table(model_path):
    return read_model(model_path)


@pytest.fixture
def beam(model_table):
    """A fresh beam on the shared coefficient table, released afterwards."""
    fee = FEEBeam(table=model_table, chunk_size=64)
    yield fee
    if not fee.released:
        fee.release()
