#!/usr/bin/env python3
"""
Evaluate many directions through the boundary interface.

Usage:
    python beam_calcs_many.py /path/to/mwa_full_embedded_element_pattern.h5

Without an argument a small synthetic model is generated and used instead.
"""

import sys
import tempfile
from pathlib import Path

import numpy as np

from fee_beam import (
    create_synthetic_model,
    compute_jones_batch,
    free_beam,
    new_beam,
    write_model_hdf5,
)
from fee_beam.utilities import ERROR_MESSAGE_LENGTH


def print_jones(title, jones):
    print(title)
    print(f"[[{jones[0, 0]:+.8f}, {jones[0, 1]:+.8f}]")
    print(f" [{jones[1, 0]:+.8f}, {jones[1, 1]:+.8f}]]")


def main(argv):
    if len(argv) > 1:
        beam_file = argv[1]
    else:
        beam_file = str(Path(tempfile.mkdtemp()) / 'synthetic_fee.h5')
        write_model_hdf5(create_synthetic_model([49920000, 51200000, 52480000]), beam_file)
        print(f"No beam file given; using synthetic model {beam_file}")

    error = bytearray(ERROR_MESSAGE_LENGTH)
    result = new_beam(beam_file, error)
    if not result.ok:
        print(f"Got an error when trying to make an FEEBeam: {result.error}")
        return 1
    beam = result.value

    num_directions = 5000
    directions = np.tile(np.radians([45.0, 10.0]), (num_directions, 1))
    delays = [0] * 16
    freq_hz = 51200000

    result = compute_jones_batch(beam, directions, freq_hz, delays, [1.0] * 16,
                                 normalize_to_zenith=True, apply_parallactic=True,
                                 error_buffer=error)
    if not result.ok:
        print(f"Got an error when running compute_jones_batch: {result.error}")
        return 1
    print_jones("The first Jones matrix:", result.value[0])

    amps_2 = [1.0] * 31 + [0.0]
    result = compute_jones_batch(beam, directions, freq_hz, delays, amps_2,
                                 normalize_to_zenith=True, apply_parallactic=True,
                                 error_buffer=error)
    if not result.ok:
        print(f"Got an error when running compute_jones_batch: {result.error}")
        return 1
    print_jones("The first Jones matrix with altered Y amps:", result.value[0])

    # A deliberately bad amplitude vector reports through the error buffer
    result = compute_jones_batch(beam, directions, freq_hz, delays, [1.0] * 20,
                                 normalize_to_zenith=True, apply_parallactic=True,
                                 error_buffer=error)
    print(f"Expected error: {error[:error.index(0)].decode()}")

    free_beam(beam)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
