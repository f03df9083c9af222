"""
Recording of candidates.

CandidateRecorder is a module that copies the state of every candidate it
processes into a NumPy structured array. As the reject action of a break
condition it records candidates right before they are dropped.
"""

import numpy as np
import h5py
from pathlib import Path
from typing import Union

from uhecr_mc.core import units
from uhecr_mc.core.particle import Candidate
from uhecr_mc.transport.module import Module


RECORD_DTYPE = np.dtype([
    ('id', np.int64),
    ('energy', np.float64),             # J
    ('position', np.float64, 3),        # m
    ('direction', np.float64, 3),       # unit vector
    ('trajectory_length', np.float64),  # m
    ('redshift', np.float64),
    ('weight', np.float64),
    ('initial_id', np.int64),
    ('initial_energy', np.float64),     # J
    ('initial_position', np.float64, 3),
    ('tag', 'S64'),                     # value of the tag key
])


class CandidateRecorder(Module):
    """Collects one record per processed candidate."""

    def __init__(self, tag_key: str = 'Rejected', initial_capacity: int = 1024):
        """
        Parameters:
            tag_key: Candidate property stored in the 'tag' column
            initial_capacity: Initial number of preallocated rows
        """
        self.tag_key = tag_key
        self._records = np.zeros(initial_capacity, dtype=RECORD_DTYPE)
        self._count = 0

    def process(self, candidate: Candidate):
        if self._count == len(self._records):
            grown = np.zeros(2 * len(self._records) + 1, dtype=RECORD_DTYPE)
            grown[:self._count] = self._records
            self._records = grown

        row = self._records[self._count]
        state = candidate.current
        row['id'] = state.id
        row['energy'] = state.energy
        row['position'] = state.position
        row['direction'] = state.direction
        row['trajectory_length'] = candidate.trajectory_length
        row['redshift'] = candidate.redshift
        row['weight'] = candidate.weight
        row['initial_id'] = candidate.initial.id
        row['initial_energy'] = candidate.initial.energy
        row['initial_position'] = candidate.initial.position
        row['tag'] = candidate.get_property(self.tag_key, '').encode()[:64]
        self._count += 1

    @property
    def records(self) -> np.ndarray:
        """Recorded rows (a copy)."""
        return self._records[:self._count].copy()

    def __len__(self) -> int:
        return self._count

    def clear(self):
        self._count = 0

    def save_hdf5(self, filename: Union[str, Path], dataset: str = 'candidates'):
        """Write the records to an HDF5 file."""
        with h5py.File(filename, 'w') as f:
            dset = f.create_dataset(dataset, data=self.records)
            dset.attrs['energy_unit'] = 'J'
            dset.attrs['length_unit'] = 'm'
            dset.attrs['tag_key'] = self.tag_key

    def get_statistics(self) -> dict:
        """Summary of recorded energies and lengths."""
        records = self.records
        if len(records) == 0:
            return {'n_records': 0}
        energies = records['energy'] / units.EeV
        lengths = records['trajectory_length'] / units.Mpc
        return {
            'n_records': len(records),
            'mean_energy_EeV': float(np.mean(energies)),
            'min_energy_EeV': float(np.min(energies)),
            'max_energy_EeV': float(np.max(energies)),
            'mean_length_Mpc': float(np.mean(lengths)),
        }

    @property
    def description(self) -> str:
        return f"CandidateRecorder: {self._count} records, tag '{self.tag_key}'"

    def __repr__(self) -> str:
        stats = self.get_statistics()
        return f"CandidateRecorder(n={stats['n_records']})"
