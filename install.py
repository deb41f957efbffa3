#!/usr/bin/env python
"""
Installation script for the fee_beam package.
Installs the package with its development extras, runs the test suite and
reports whether a beam model is configured through MWA_BEAM_FILE.
"""

import os
import subprocess
import sys


def main():
    """Main installation function."""
    script_dir = os.path.dirname(os.path.abspath(__file__))

    print("===== Installing fee_beam =====")
    print(f"Project directory: {script_dir}")

    src_dir = os.path.join(script_dir, "src", "fee_beam")
    if not os.path.isdir(src_dir):
        print(f"Error: could not find the package sources at {src_dir}")
        print("  Run this script from the project root.")
        return 1

    try:
        subprocess.check_call([sys.executable, "-m", "pip", "install", "-e", ".[dev]"], cwd=script_dir)
        print("Installation successful")
    except subprocess.CalledProcessError:
        print("Installation failed")
        return 1

    print("\n===== Running tests =====")
    try:
        subprocess.check_call([sys.executable, "-m", "pytest", "tests"], cwd=script_dir)
        print("Tests passed")
    except subprocess.CalledProcessError:
        print("Some tests failed")
        return 1

    print("\n===== Beam model =====")
    beam_file = os.environ.get("MWA_BEAM_FILE")
    if beam_file and os.path.isfile(beam_file):
        print(f"Using beam model {beam_file}")
    else:
        print("MWA_BEAM_FILE is not set to an existing file.")
        print("  Download mwa_full_embedded_element_pattern.h5 and point MWA_BEAM_FILE at it,")
        print("  or pass the path to fee_beam.FEEBeam directly.")

    print("\n===== Installation complete =====")
    return 0


if __name__ == "__main__":
    sys.exit(main())
