"""
Tests for loading coefficient models and looking up frequencies.
"""
import h5py
import numpy as np
import pytest

from fee_beam import (
    ConfigurationError,
    MalformedModelError,
    ModelFileNotFoundError,
    UnsupportedVersionError,
    create_synthetic_model,
    read_model,
    save_model_npz,
    write_model_hdf5,
)

FREQS = [49920000, 51200000, 52480000]


def test_read_hdf5_model(model_table, synthetic_model):
    """All frequencies, dipoles and polarisations are loaded."""
    assert model_table.frequencies == FREQS
    assert len(model_table) == 3
    assert 51200000 in model_table

    coeff_set = model_table.lookup(51200000)
    assert coeff_set.freq_hz == 51200000
    assert coeff_set.data.q1.shape == (2, 16, 15)
    assert coeff_set.n_max == 3

    raw = synthetic_model['Y5_51200000']
    values = raw[0] * np.exp(1j * np.radians(raw[1]))
    np.testing.assert_allclose(coeff_set.data.q1.sel(pol='Y', dipole=5).values, values[0::2])
    np.testing.assert_allclose(coeff_set.data.q2.sel(pol='Y', dipole=5).values, values[1::2])


def test_mode_indices_in_feko_order(model_table):
    coeff_set = model_table.lookup(FREQS[0])
    np.testing.assert_array_equal(coeff_set.data.n.values[:3], [1, 1, 1])
    np.testing.assert_array_equal(coeff_set.data.m.values[:8], [-1, 0, 1, -2, -1, 0, 1, 2])


@pytest.mark.parametrize("requested, expected", [
    (51200000, 51200000),
    (51000000, 51200000),
    (10e6, 49920000),
    (300e6, 52480000),
    (50560000, 49920000),  # exact midpoint resolves to the lower frequency
])
def test_closest_frequency(model_table, requested, expected):
    assert model_table.closest_freq(requested) == expected
    assert model_table.lookup(requested).freq_hz == expected


@pytest.mark.parametrize("bad", [0, -5e6, float('nan'), float('inf'), 'abc'])
def test_bad_frequency_rejected(model_table, bad):
    with pytest.raises(ConfigurationError):
        model_table.closest_freq(bad)


def test_missing_file(tmp_path):
    with pytest.raises(ModelFileNotFoundError) as excinfo:
        read_model(tmp_path / 'nope.h5')
    assert isinstance(excinfo.value, FileNotFoundError)


def test_missing_modes_dataset(tmp_path):
    model = create_synthetic_model([51200000], n_max=1)
    del model['modes']
    path = tmp_path / 'no_modes.h5'
    write_model_hdf5(model, path)
    with pytest.raises(MalformedModelError, match='modes'):
        read_model(path)


def test_missing_dipole_dataset(tmp_path):
    model = create_synthetic_model([51200000], n_max=1)
    del model['Y16_51200000']
    path = tmp_path / 'no_y16.h5'
    write_model_hdf5(model, path)
    with pytest.raises(MalformedModelError, match='Y16_51200000'):
        read_model(path)


def test_unsupported_version(tmp_path):
    model = create_synthetic_model([51200000], n_max=1)
    path = tmp_path / 'future.h5'
    write_model_hdf5(model, path, version='7')
    with pytest.raises(UnsupportedVersionError):
        read_model(path)


def test_unknown_suffix(tmp_path):
    path = tmp_path / 'model.txt'
    path.write_text('not a model')
    with pytest.raises(UnsupportedVersionError):
        read_model(path)


def test_corrupt_hdf5(tmp_path):
    path = tmp_path / 'corrupt.h5'
    path.write_bytes(b'definitely not hdf5')
    with pytest.raises(MalformedModelError):
        read_model(path)


def test_shorter_dipole_lists_are_zero_padded(tmp_path):
    """A dipole with fewer modes is padded with zeros up to the longest list."""
    model = create_synthetic_model([51200000], n_max=2)
    model['X3_51200000'] = model['X3_51200000'][:, :6]  # n = 1 modes only
    path = tmp_path / 'short.h5'
    write_model_hdf5(model, path)

    coeff_set = read_model(path).lookup(51200000)
    q2 = coeff_set.data.q2.sel(pol='X', dipole=3).values
    assert coeff_set.num_modes == 8
    assert np.all(q2[3:] == 0)
    assert np.any(q2[:3] != 0)


def test_unpaired_modes_rejected(tmp_path):
    model = create_synthetic_model([51200000], n_max=1)
    model['modes'] = model['modes'].copy()
    model['modes'][0, 1] = 1  # two s=1 entries for the first mode
    path = tmp_path / 'unpaired.h5'
    write_model_hdf5(model, path)
    with pytest.raises(MalformedModelError):
        read_model(path)


def test_npz_model_matches_hdf5(tmp_path):
    model = create_synthetic_model([51200000, 52480000], n_max=2, seed=3)
    h5_path = tmp_path / 'model.h5'
    npz_path = tmp_path / 'model.npz'
    write_model_hdf5(model, h5_path)
    save_model_npz(model, npz_path)

    from_h5 = read_model(h5_path).lookup(52480000)
    from_npz = read_model(npz_path).lookup(52480000)
    np.testing.assert_allclose(from_npz.data.q1.values, from_h5.data.q1.values)
    np.testing.assert_allclose(from_npz.data.q2.values, from_h5.data.q2.values)


def test_npz_wrong_format_rejected(tmp_path):
    model = create_synthetic_model([51200000], n_max=1)
    path = tmp_path / 'other.npz'
    save_model_npz(model, path, metadata={'format': 'Something Else'})
    with pytest.raises(UnsupportedVersionError):
        read_model(path)


def test_hdf5_without_version_attribute(tmp_path):
    model = create_synthetic_model([51200000], n_max=1)
    path = tmp_path / 'plain.h5'
    with h5py.File(path, 'w') as h5f:
        for name, values in model.items():
            h5f.create_dataset(name, data=values)
    assert read_model(path).frequencies == [51200000]


def test_combine_sums_weighted_dipoles(model_table):
    coeff_set = model_table.lookup(51200000)
    weights = np.zeros((2, 16), dtype=complex)
    weights[0, 2] = 2.0
    weights[1, 7] = 1j

    combined = coeff_set.combine(weights)
    assert combined.freq_hz == 51200000

    # The X series is twice dipole X3 alone, the Y series i times dipole Y8 alone
    single = np.zeros((2, 16))
    single[0, 2] = 1.0
    single[1, 7] = 1.0
    reference = coeff_set.combine(single)
    np.testing.assert_allclose(combined.x.t_1, 2 * reference.x.t_1)
    np.testing.assert_allclose(combined.y.p_1, 1j * reference.y.p_1)


def test_combine_rejects_bad_weights(model_table):
    with pytest.raises(ConfigurationError):
        model_table.lookup(51200000).combine(np.ones(16))
