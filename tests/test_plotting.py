"""
Smoke tests for beam plotting.
"""
import matplotlib
matplotlib.use('Agg')

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pytest  # noqa: E402

from fee_beam import instrumental_power, plot_beam_response, plot_jones_elements  # noqa: E402


@pytest.fixture
def grid(beam):
    return beam.calc_jones_grid(np.arange(0, 360, 30), np.arange(0, 91, 15), 51200000, [0] * 16)


def test_instrumental_power(grid):
    power = instrumental_power(grid, 'Y')
    assert power.dims == ('za', 'az')
    expected = np.abs(grid.jones.values[:, :, 1, 0]) ** 2 + np.abs(grid.jones.values[:, :, 1, 1]) ** 2
    np.testing.assert_allclose(power.values, expected)

    with pytest.raises(ValueError):
        instrumental_power(grid, 'Z')


def test_plot_beam_response(grid):
    fig = plot_beam_response(grid, pol='X')
    assert isinstance(fig, plt.Figure)
    assert 'MHz' in fig.axes[0].get_title()
    plt.close(fig)


def test_plot_on_existing_axes(grid):
    fig, ax = plt.subplots()
    returned = plot_beam_response(grid, pol='Y', log_scale=False, ax=ax, title='Y beam')
    assert returned is fig
    assert ax.get_title() == 'Y beam'
    plt.close(fig)


def test_plot_jones_elements(grid):
    fig = plot_jones_elements(grid, title='Jones')
    assert len(fig.axes) == 8  # four panels and their colour bars
    plt.close(fig)
