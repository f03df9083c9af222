"""
Propagate a batch of protons through a pipeline read from YAML.

Candidates start at z = 0.05 with energies drawn from an E^-2 spectrum
between 1 and 100 EeV. Candidates reaching z = 0 or falling below
1 EeV are recorded and written to HDF5.

Usage:
    python examples/scripts/propagate_from_config.py [config.yaml] [output.h5]
"""

import numpy as np
from pathlib import Path
import sys

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from uhecr_mc.config import build_module_list, load_config
from uhecr_mc.core import units
from uhecr_mc.core.particle import Candidate, ParticleState
from uhecr_mc.core.particle_id import PROTON


def make_candidates(n_candidates: int, redshift: float = 0.05, seed: int = 0):
    """Protons with an E^-2 spectrum between 1 and 100 EeV."""
    rng = np.random.default_rng(seed)
    e_min, e_max = 1.0, 100.0
    u = rng.random(n_candidates)
    energies = e_min * e_max / (e_max - u * (e_max - e_min))
    return [Candidate(ParticleState(PROTON, e * units.EeV), redshift=redshift)
            for e in energies]


def main(config_path: Path, output_path: Path, n_candidates: int = 200):
    config = load_config(config_path)
    sim, recorder = build_module_list(config)
    print(sim.description)

    stats = sim.run_all(make_candidates(n_candidates), show_progress=True)

    print(f"\nRecorded candidates: {len(recorder)}")
    for key, value in recorder.get_statistics().items():
        print(f"  {key}: {value:.4g}")

    recorder.save_hdf5(output_path)
    print(f"Saved: {output_path}")
    return stats


if __name__ == "__main__":
    default_config = Path(__file__).parent.parent / 'configs' / 'pipeline.yaml'
    config_path = Path(sys.argv[1]) if len(sys.argv) > 1 else default_config
    output_path = Path(sys.argv[2]) if len(sys.argv) > 2 else Path('candidates.h5')
    main(config_path, output_path)
