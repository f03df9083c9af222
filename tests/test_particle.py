"""Tests for core modules: particle ids, nuclear masses, ParticleState, Candidate."""

import math

import pytest
import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from uhecr_mc.core import units
from uhecr_mc.core.nuclear_mass import nucleus_mass
from uhecr_mc.core.particle import Candidate, ParticleState
from uhecr_mc.core.particle_id import (
    HELIUM,
    IRON,
    NEUTRON,
    PROTON,
    charge_number,
    is_nucleus,
    mass_number,
    nucleus_id,
    nucleus_name,
)
from uhecr_mc.errors import (
    DataFormatError,
    NucleusNotFoundError,
    UhecrError,
    UnknownParticleError,
)


class TestParticleId:
    """Tests for nucleus id encoding."""

    def test_known_ids(self):
        """Test the PDG numbering of common nuclei."""
        assert PROTON == 1000010010
        assert NEUTRON == 1000000010
        assert HELIUM == 1000020040
        assert IRON == 1000260560

    def test_decode(self):
        """Test that charge and mass number are recovered."""
        pid = nucleus_id(56, 26)
        assert is_nucleus(pid)
        assert charge_number(pid) == 26
        assert mass_number(pid) == 56
        assert nucleus_name(pid) == "A=56, Z=26"

    def test_leptons(self):
        """Test plain PDG codes of leptons and photons."""
        assert not is_nucleus(11)
        assert charge_number(11) == -1
        assert charge_number(-11) == 1
        assert charge_number(22) == 0
        assert mass_number(11) == 0

    def test_invalid_nucleus(self):
        """Test that Z > A and negative numbers raise ValueError."""
        with pytest.raises(ValueError, match="more protons"):
            nucleus_id(1, 2)
        with pytest.raises(ValueError, match="non-negative"):
            nucleus_id(-1, 0)

    def test_unknown_particle(self):
        """Test that an unknown non-nuclear id has no charge number."""
        with pytest.raises(UnknownParticleError, match="unknown particle id"):
            charge_number(211)
        assert issubclass(UnknownParticleError, UhecrError)
        assert issubclass(UnknownParticleError, ValueError)


class TestNuclearMass:
    """Tests for the init-once nuclear mass table."""

    def test_packaged_table(self):
        """Test that the shipped table contains proton and iron."""
        assert_allclose(nucleus_mass(PROTON), units.mass_proton, rtol=1e-6)
        assert_allclose(nucleus_mass(NEUTRON), units.mass_neutron, rtol=1e-6)
        assert_allclose(nucleus_mass(IRON), 56 * units.amu, rtol=1e-2)

    def test_missing_nucleus(self):
        """Test that an absent nucleus is a distinguishable failure."""
        with pytest.raises(NucleusNotFoundError):
            nucleus_mass(nucleus_id(200, 80))

    def test_not_a_nucleus(self):
        """Test that leptons are rejected."""
        with pytest.raises(ValueError, match="not a nucleus"):
            nucleus_mass(11)

    def test_custom_table(self, data_dir):
        """Test loading from UHECR_MC_DATA_PATH; zero masses count as missing."""
        (data_dir / 'nuclear_mass.txt').write_text(
            "# Z N mass\n"
            "1 0 1.5e-27\n"
            "2 2 0.0\n"
        )
        assert nucleus_mass(PROTON) == 1.5e-27
        with pytest.raises(NucleusNotFoundError):
            nucleus_mass(HELIUM)

    def test_missing_table(self, data_dir):
        """Test that a missing table raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            nucleus_mass(PROTON)

    def test_malformed_table(self, data_dir):
        """Test that fractional nucleon numbers are rejected."""
        (data_dir / 'nuclear_mass.txt').write_text("1.5 0 1.5e-27\n")
        with pytest.raises(DataFormatError, match="invalid nucleon numbers"):
            nucleus_mass(PROTON)


class TestParticleState:
    """Tests for ParticleState."""

    def test_initialization(self, proton_state):
        """Test basic initialization."""
        assert proton_state.id == PROTON
        assert proton_state.energy == 10 * units.EeV
        assert_array_equal(proton_state.position, [0.0, 0.0, 0.0])
        assert_array_equal(proton_state.direction, [1.0, 0.0, 0.0])

    def test_direction_normalized(self):
        """Test that the direction is normalized on assignment."""
        state = ParticleState(PROTON, units.EeV, direction=(3.0, 4.0, 0.0))
        assert_allclose(state.direction, [0.6, 0.8, 0.0])
        assert_allclose(np.linalg.norm(state.direction), 1.0)

    def test_zero_direction(self):
        """Test that a zero direction raises ValueError."""
        with pytest.raises(ValueError, match="direction"):
            ParticleState(PROTON, units.EeV, direction=(0.0, 0.0, 0.0))

    def test_negative_energy(self, proton_state):
        """Test that negative and NaN energies raise ValueError."""
        with pytest.raises(ValueError, match="non-negative"):
            proton_state.energy = -1.0
        with pytest.raises(ValueError, match="non-negative"):
            proton_state.energy = float('nan')

    def test_rigidity(self):
        """Test rigidity as energy per charge number."""
        state = ParticleState(IRON, 26 * units.EeV)
        assert_allclose(state.rigidity, units.EeV)
        assert ParticleState(NEUTRON, units.EeV).rigidity == math.inf

    def test_lorentz_factor(self, proton_state):
        """Test the Lorentz factor of a proton."""
        expected = 10 * units.EeV / units.proton_rest_energy
        assert_allclose(proton_state.lorentz_factor, expected, rtol=1e-6)

    def test_copy_is_independent(self, proton_state):
        """Test that copies do not share arrays."""
        clone = proton_state.copy()
        clone.position = (1.0, 2.0, 3.0)
        clone.energy = 1.0
        assert_array_equal(proton_state.position, [0.0, 0.0, 0.0])
        assert proton_state.energy == 10 * units.EeV


class TestCandidate:
    """Tests for Candidate bookkeeping and step negotiation."""

    def test_initial_state(self, proton):
        """Test a fresh candidate."""
        assert proton.is_active()
        assert proton.trajectory_length == 0.0
        assert proton.current_step == 0.0
        assert proton.next_step == math.inf
        assert proton.redshift == 0.0
        assert proton.weight == 1.0
        assert proton.properties == {}

    def test_initial_is_snapshot(self, proton):
        """Test that the initial state is not changed by propagation."""
        proton.current.energy = units.EeV
        assert proton.initial.energy == 10 * units.EeV

    def test_limit_next_step_keeps_minimum(self, proton):
        """Test that the most restrictive request wins."""
        proton.limit_next_step(5 * units.Mpc)
        proton.limit_next_step(2 * units.Mpc)
        proton.limit_next_step(3 * units.Mpc)
        assert proton.next_step == 2 * units.Mpc

    @pytest.mark.parametrize("step", [0.0, -1.0, float('nan')])
    def test_limit_next_step_ignores_invalid(self, proton, step):
        """Test that non-positive and NaN requests are ignored."""
        proton.limit_next_step(step)
        assert proton.next_step == math.inf

    def test_advance(self, proton):
        """Test that advancing moves the particle and resets the limit."""
        proton.limit_next_step(units.Mpc)
        proton.advance(2 * units.Mpc)
        assert_allclose(proton.current.position, [2 * units.Mpc, 0.0, 0.0])
        assert proton.trajectory_length == 2 * units.Mpc
        assert proton.current_step == 2 * units.Mpc
        assert proton.next_step == math.inf

    def test_negative_advance(self, proton):
        """Test that a negative step raises ValueError."""
        with pytest.raises(ValueError, match="non-negative"):
            proton.advance(-1.0)

    def test_properties(self, proton):
        """Test the string tag map."""
        proton.set_property('Rejected', 'MinimumEnergy')
        assert proton.has_property('Rejected')
        assert proton.get_property('Rejected') == 'MinimumEnergy'
        proton.remove_property('Rejected')
        assert not proton.has_property('Rejected')
        assert proton.get_property('Rejected', 'none') == 'none'

    def test_negative_redshift(self, proton):
        """Test that a negative redshift raises ValueError."""
        with pytest.raises(ValueError, match="redshift"):
            proton.redshift = -0.1
