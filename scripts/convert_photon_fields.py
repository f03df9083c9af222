"""
Convert photon field tables from ASCII to a single binary NumPy archive.

For every '<name>_photonEnergy.txt' in the data directory the energy,
density and (if present) redshift scaling tables are packed into
'<name>_photonField.npz', which TabularPhotonField loads in preference
to the text files.

Usage:
    python scripts/convert_photon_fields.py [data_dir]
"""

import numpy as np
from pathlib import Path
import time
import sys

# Add parent directory to path to import uhecr_mc
sys.path.insert(0, str(Path(__file__).parent.parent))

from uhecr_mc.core.data import data_directory, read_table


def convert_photon_fields(data_dir=None):
    """Pack all photon field tables in data_dir into .npz archives."""
    data_path = Path(data_dir) if data_dir is not None else data_directory()

    if not data_path.exists():
        print(f"Error: {data_path} does not exist")
        return

    energy_files = sorted(data_path.glob('*_photonEnergy.txt'))

    if not energy_files:
        print(f"No photon field tables found in {data_path}")
        return

    print(f"Found {len(energy_files)} photon fields")
    print(f"Converting ASCII -> binary NumPy format...\n")

    for energy_file in energy_files:
        name = energy_file.name[:-len('_photonEnergy.txt')]
        print(f"Processing: {name}")

        start = time.time()
        arrays = {
            'energy': read_table(energy_file),
            'density': read_table(data_path / f'{name}_photonDensity.txt'),
        }
        scaling_file = data_path / f'{name}_redshiftScaling.txt'
        if scaling_file.exists():
            table = read_table(scaling_file, n_columns=2)
            arrays['redshift'] = table[:, 0]
            arrays['scaling'] = table[:, 1]
        time_ascii = time.time() - start
        print(f"  ASCII load: {time_ascii*1000:.1f}ms ({len(arrays['energy'])} energies)")

        npz_file = data_path / f'{name}_photonField.npz'
        np.savez(npz_file, **arrays)

        with np.load(npz_file) as loaded:
            for key, values in arrays.items():
                assert np.array_equal(loaded[key], values), f"{name}: mismatch in {key}"

        print(f"  Saved: {npz_file.name}\n")

    print("Binary files (.npz) will be used automatically by TabularPhotonField.")


if __name__ == "__main__":
    convert_photon_fields(sys.argv[1] if len(sys.argv) > 1 else None)
