"""Tests for candidate recording and HDF5 output."""

import h5py
import pytest
import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from uhecr_mc.core import units
from uhecr_mc.core.particle import Candidate, ParticleState
from uhecr_mc.core.particle_id import HELIUM, PROTON
from uhecr_mc.transport.break_condition import MaximumTrajectoryLength
from uhecr_mc.transport.module import ModuleList
from uhecr_mc.transport.output import RECORD_DTYPE, CandidateRecorder


def propagated(energy, length=5.0, pid=PROTON):
    candidate = Candidate(ParticleState(pid, energy, (0.0, 0.0, 0.0), (0.0, 1.0, 0.0)))
    candidate.advance(length)
    candidate.set_property('Rejected', 'Test')
    return candidate


class TestCandidateRecorder:
    """Tests for CandidateRecorder."""

    def test_record_fields(self):
        """Test that one row holds current and initial state."""
        recorder = CandidateRecorder()
        candidate = propagated(10 * units.EeV)
        candidate.current.energy = 5 * units.EeV
        recorder.process(candidate)

        row = recorder.records[0]
        assert row['id'] == PROTON
        assert row['energy'] == 5 * units.EeV
        assert row['initial_energy'] == 10 * units.EeV
        assert_allclose(row['position'], [0.0, 5.0, 0.0])
        assert_array_equal(row['initial_position'], [0.0, 0.0, 0.0])
        assert row['trajectory_length'] == 5.0
        assert row['tag'] == b'Test'

    def test_growth(self):
        """Test that the buffer grows past its initial capacity."""
        recorder = CandidateRecorder(initial_capacity=2)
        for i in range(5):
            recorder.process(propagated((i + 1) * units.EeV))

        assert len(recorder) == 5
        assert_allclose(recorder.records['energy'] / units.EeV, [1, 2, 3, 4, 5])

    def test_records_are_copy(self):
        recorder = CandidateRecorder()
        recorder.process(propagated(units.EeV))
        records = recorder.records
        records['energy'][0] = 0.0
        assert recorder.records['energy'][0] == units.EeV

    def test_clear(self):
        recorder = CandidateRecorder()
        recorder.process(propagated(units.EeV))
        recorder.clear()
        assert len(recorder) == 0
        assert recorder.get_statistics() == {'n_records': 0}

    def test_statistics(self):
        recorder = CandidateRecorder()
        recorder.process(propagated(units.EeV, units.Mpc))
        recorder.process(propagated(3 * units.EeV, 3 * units.Mpc))
        stats = recorder.get_statistics()

        assert stats['n_records'] == 2
        assert_allclose(stats['mean_energy_EeV'], 2.0)
        assert_allclose(stats['max_energy_EeV'], 3.0)
        assert_allclose(stats['mean_length_Mpc'], 2.0)

    def test_as_reject_action(self):
        """Test recording the candidates dropped by a break condition."""
        recorder = CandidateRecorder()
        condition = MaximumTrajectoryLength(3.0)
        condition.on_reject(recorder)
        sim = ModuleList(max_step=1.0).add(condition)
        sim.run_all([Candidate(ParticleState(PROTON, units.EeV)),
                     Candidate(ParticleState(HELIUM, 4 * units.EeV))])

        assert len(recorder) == 2
        assert_array_equal(recorder.records['id'], [PROTON, HELIUM])
        assert_array_equal(recorder.records['trajectory_length'], [3.0, 3.0])
        assert recorder.description == "CandidateRecorder: 2 records, tag 'Rejected'"

    def test_save_hdf5(self, tmp_path):
        """Test writing the records with h5py."""
        recorder = CandidateRecorder()
        recorder.process(propagated(2 * units.EeV))
        path = tmp_path / 'events.h5'
        recorder.save_hdf5(path)

        with h5py.File(path, 'r') as f:
            data = f['candidates'][:]
            assert f['candidates'].attrs['energy_unit'] == 'J'
        assert data.dtype.names == RECORD_DTYPE.names
        assert data['energy'][0] == 2 * units.EeV
        assert data['tag'][0] == b'Test'
