"""Pytest configuration and shared fixtures for uhecr_mc tests."""

import pytest
import numpy as np

from uhecr_mc.core import units
from uhecr_mc.core.particle import Candidate, ParticleState
from uhecr_mc.core.particle_id import IRON, PROTON
from uhecr_mc.physics.photon_field import CMB, TabularPhotonField
from uhecr_mc.transport.module import Module


class SpyModule(Module):
    """Records every candidate it sees and the trajectory length at that time."""

    def __init__(self):
        self.calls = []

    def process(self, candidate):
        self.calls.append(candidate.trajectory_length)


class FailingModule(Module):
    """Raises a given exception on the n-th call."""

    def __init__(self, exception, on_call=1):
        self.exception = exception
        self.on_call = on_call
        self.n_calls = 0

    def process(self, candidate):
        self.n_calls += 1
        if self.n_calls == self.on_call:
            raise self.exception


# Fixtures for candidates


@pytest.fixture
def proton_state():
    """10 EeV proton at the origin moving along +x."""
    return ParticleState(PROTON, 10 * units.EeV, (0.0, 0.0, 0.0), (1.0, 0.0, 0.0))


@pytest.fixture
def proton(proton_state):
    """Fresh proton candidate at z = 0."""
    return Candidate(proton_state)


@pytest.fixture
def iron():
    """100 EeV iron candidate."""
    return Candidate(ParticleState(IRON, 100 * units.EeV, (0.0, 0.0, 0.0), (1.0, 0.0, 0.0)))


@pytest.fixture
def spy():
    return SpyModule()


# Fixtures for photon fields


@pytest.fixture(scope='session')
def cmb():
    return CMB()


@pytest.fixture
def evolving_field():
    """Small power-law field with a tabulated redshift evolution."""
    energies = np.logspace(-3, 0, 31) * units.eV
    densities = 1e6 * (energies / units.eV)**-1.0
    redshifts = np.array([0.0, 1.0, 2.0])
    scalings = np.array([2.0, 4.0, 1.0])
    return TabularPhotonField.from_arrays('TestField', energies, densities, redshifts, scalings)


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Empty data directory selected through UHECR_MC_DATA_PATH."""
    from uhecr_mc.core.nuclear_mass import nuclear_mass_table

    monkeypatch.setenv('UHECR_MC_DATA_PATH', str(tmp_path))
    nuclear_mass_table.cache_clear()
    yield tmp_path
    nuclear_mass_table.cache_clear()
