#!/usr/bin/env python3
"""
Basic MWA Tile Beam Tutorial

This tutorial walks through the main operations of the fee_beam package:
- Loading a coefficient model
- Evaluating Jones matrices for a zenith and a pointed beam
- Normalisation and the parallactic correction
- Gridding and plotting the instrumental power

Set MWA_BEAM_FILE to the real mwa_full_embedded_element_pattern.h5 to use it;
otherwise a synthetic model is generated.
"""

import os
import tempfile
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from fee_beam import (
    FEEBeam, MWA_LATITUDE_RAD, create_synthetic_model, plot_beam_response,
    plot_jones_elements, write_model_hdf5
)


def print_section_header(title):
    """Print a formatted section header."""
    print("\n" + "="*60)
    print(f"{title}")
    print("="*60)


script_dir = Path(__file__).parent

# ============================================================================
print_section_header("TUTORIAL 1: LOADING THE BEAM MODEL")
# ============================================================================
beam_file = os.environ.get("MWA_BEAM_FILE")
if not beam_file:
    beam_file = Path(tempfile.mkdtemp()) / "synthetic_fee.h5"
    write_model_hdf5(create_synthetic_model(np.arange(49920000, 60000000, 1280000), n_max=4), beam_file)
    print(f"MWA_BEAM_FILE not set, using a synthetic model: {beam_file}")

beam = FEEBeam(beam_file)
freqs = beam.frequencies
print(f"Tabulated frequencies: {len(freqs)} from {freqs[0]/1e6:.2f} to {freqs[-1]/1e6:.2f} MHz")
print(f"A request at 55 MHz uses {beam.closest_freq(55e6)/1e6:.2f} MHz")

# ============================================================================
print_section_header("TUTORIAL 2: A SINGLE DIRECTION")
# ============================================================================
zenith_delays = [0] * 16
jones = beam.calc_jones(np.radians(45), np.radians(10), 51200000, zenith_delays, norm_to_zenith=True)
print("Normalised Jones matrix at az=45 deg, za=10 deg:")
print(jones)

# ============================================================================
print_section_header("TUTORIAL 3: POINTING THE TILE")
# ============================================================================
pointed_delays = [3, 2, 1, 0, 3, 2, 1, 0, 3, 2, 1, 0, 3, 2, 1, 0]
az = np.radians(np.linspace(0, 360, 13))
za = np.full_like(az, np.radians(20))
for name, delays in (("zenith", zenith_delays), ("pointed", pointed_delays)):
    j = beam.calc_jones_array(az, za, 51200000, delays, norm_to_zenith=True)
    xx = np.abs(j[:, 0, 0])**2 + np.abs(j[:, 0, 1])**2
    print(f"{name:>8}: X power around za=20 deg ranges {xx.min():.3f} to {xx.max():.3f}")

rotated = beam.calc_jones_array(az, za, 51200000, pointed_delays, norm_to_zenith=True,
                                latitude_rad=MWA_LATITUDE_RAD, iau_order=True)
print(f"With parallactic correction and IAU order, first matrix:\n{rotated[0]}")

# ============================================================================
print_section_header("TUTORIAL 4: BEAM MAPS")
# ============================================================================
grid = beam.calc_jones_grid(np.arange(0, 360, 2), np.arange(0, 91, 1), 51200000, pointed_delays)
fig = plot_beam_response(grid, pol='X')
fig.savefig(script_dir / "beam_x_power.png", dpi=150)
fig = plot_jones_elements(grid, title="Pointed tile, 51.2 MHz")
fig.savefig(script_dir / "beam_jones.png", dpi=150)
print(f"Saved plots to {script_dir}")

print(f"Coefficient builds: {beam.coefficient_builds}, normalisation builds: {beam.norm_builds}")
beam.release()
plt.show()
