"""
Plotting functions for tile beam grids produced by FEEBeam.calc_jones_grid.
"""
import numpy as np
import matplotlib.pyplot as plt
import xarray as xr
from matplotlib.colors import LogNorm
from typing import Optional, Tuple


def instrumental_power(grid: xr.Dataset, pol: str = 'X') -> xr.DataArray:
    """
    Response of one dipole polarisation to unpolarised sky, |J_p0|^2 + |J_p1|^2.

    Args:
        grid: Dataset from FEEBeam.calc_jones_grid
        pol: 'X' or 'Y'

    Returns:
        DataArray with dims (za, az)
    """
    if pol not in grid.pol.values:
        raise ValueError(f"Polarisation must be one of {list(grid.pol.values)}, got '{pol}'")
    row = grid.jones.sel(pol=pol)
    return (np.abs(row) ** 2).sum(dim='sky')


def plot_beam_response(
    grid: xr.Dataset,
    pol: str = 'X',
    log_scale: bool = True,
    floor: float = 1e-6,
    ax: Optional[plt.Axes] = None,
    fig_size: Tuple[float, float] = (8, 7),
    title: Optional[str] = None
) -> plt.Figure:
    """
    Plot the instrumental power of one polarisation on the az/za grid.

    Args:
        grid: Dataset from FEEBeam.calc_jones_grid
        pol: 'X' or 'Y'
        log_scale: Use a logarithmic colour scale
        floor: Smallest power shown with the log scale, relative to the peak
        ax: Optional matplotlib axes to plot on
        fig_size: Figure size as (width, height) in inches
        title: Optional title for the plot

    Returns:
        matplotlib.Figure: The created figure object
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=fig_size)
    else:
        fig = ax.figure

    power = instrumental_power(grid, pol).values
    az = grid.az.values
    za = grid.za.values

    norm = None
    if log_scale:
        vmax = float(np.max(power)) if np.any(power > 0) else 1.0
        norm = LogNorm(vmin=vmax * floor, vmax=vmax)
        power = np.clip(power, vmax * floor, None)

    mesh = ax.pcolormesh(az, za, power, shading='auto', norm=norm)
    fig.colorbar(mesh, ax=ax, label='Power (linear)')

    ax.set_xlabel('Azimuth (degrees)')
    ax.set_ylabel('Zenith angle (degrees)')
    if title is None:
        title = f"{pol} power, {grid.attrs.get('freq_hz', 0) / 1e6:.2f} MHz"
    ax.set_title(title)
    return fig


def plot_jones_elements(
    grid: xr.Dataset,
    fig_size: Tuple[float, float] = (11, 9),
    title: Optional[str] = None
) -> plt.Figure:
    """
    Plot the magnitude of each Jones entry in a 2x2 panel.

    Returns:
        matplotlib.Figure: The created figure object
    """
    fig, axes = plt.subplots(2, 2, figsize=fig_size, sharex=True, sharey=True)
    az = grid.az.values
    za = grid.za.values
    pols = list(grid.pol.values)

    for i in range(2):
        for j in range(2):
            ax = axes[i, j]
            mag = np.abs(grid.jones.values[:, :, i, j])
            mesh = ax.pcolormesh(az, za, mag, shading='auto')
            fig.colorbar(mesh, ax=ax)
            ax.set_title(f"|J[{pols[i]}, {j}]|")
            if i == 1:
                ax.set_xlabel('Azimuth (degrees)')
            if j == 0:
                ax.set_ylabel('Zenith angle (degrees)')

    if title:
        fig.suptitle(title)
    fig.tight_layout()
    return fig
