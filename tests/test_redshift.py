"""Tests for cosmological redshift along the trajectory."""

import pytest
import numpy as np
from numpy.testing import assert_allclose

from uhecr_mc.core import units
from uhecr_mc.core.particle import Candidate, ParticleState
from uhecr_mc.core.particle_id import PROTON
from uhecr_mc.physics.redshift import Redshift, hubble_rate
from uhecr_mc.transport.break_condition import MinimumRedshift
from uhecr_mc.transport.module import ModuleList


class TestHubbleRate:
    """Tests for the flat LCDM expansion rate."""

    def test_present_day(self):
        assert_allclose(hubble_rate(0.0) * units.Mpc / units.kilometer, 67.3)

    def test_matter_dominated(self):
        """Test H(z) = H0 sqrt(Omega_L + Omega_m (1 + z)^3)."""
        expected = units.H0 * np.sqrt(units.omega_l + units.omega_m * 8.0)
        assert_allclose(hubble_rate(1.0), expected)


class TestRedshift:
    """Tests for the Redshift module."""

    def test_adiabatic_loss(self):
        """Test the redshift decrease and the adiabatic energy loss of one step."""
        z = 0.5
        candidate = Candidate(ParticleState(PROTON, 10 * units.EeV), redshift=z)
        candidate.advance(10 * units.Mpc)
        Redshift().process(candidate)

        dz = hubble_rate(z) / units.c_light * 10 * units.Mpc
        assert_allclose(candidate.redshift, z - dz)
        assert_allclose(candidate.current.energy, 10 * units.EeV * (1 - dz / (1 + z)))

    def test_zero_redshift_untouched(self, proton):
        proton.advance(units.Mpc)
        Redshift().process(proton)
        assert proton.redshift == 0.0
        assert proton.current.energy == 10 * units.EeV

    def test_never_negative(self):
        """Test that a long step stops at z = 0."""
        candidate = Candidate(ParticleState(PROTON, 10 * units.EeV), redshift=1e-4)
        candidate.advance(100 * units.Mpc)
        Redshift().process(candidate)
        assert candidate.redshift == 0.0

    def test_propagate_to_observer(self):
        """Test that a candidate from z = 0.01 arrives at z = 0 after about 44 Mpc."""
        candidate = Candidate(ParticleState(PROTON, 10 * units.EeV), redshift=0.01)
        sim = ModuleList(max_step=units.Mpc)
        sim.add(Redshift())
        sim.add(MinimumRedshift(0.0))
        sim.run(candidate)

        assert candidate.get_property('Rejected') == 'MinimumRedshift'
        distance = candidate.trajectory_length / units.Mpc
        assert 40 < distance < 48
        assert candidate.current.energy < 10 * units.EeV

    def test_description(self):
        assert Redshift().description == "Redshift: H0 = 67.3 km/s/Mpc, Omega_m = 0.315"
