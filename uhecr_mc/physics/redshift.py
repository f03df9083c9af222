"""
Cosmological redshift along the trajectory.

Flat LCDM with H0 = 67.3 km/s/Mpc and Omega_m = 0.315.
"""

import numpy as np

from uhecr_mc.core import units
from uhecr_mc.core.particle import Candidate
from uhecr_mc.transport.module import Module


def hubble_rate(z: float = 0.0) -> float:
    """Hubble rate H(z) [1/s]."""
    return units.H0 * np.sqrt(units.omega_l + units.omega_m * (1.0 + z)**3)


class Redshift(Module):
    """
    Lowers the candidate's redshift with each step and applies the
    adiabatic energy loss of the expanding universe.

        dz = H(z) / c * step,   E -> E * (1 - dz / (1 + z))
    """

    def process(self, candidate: Candidate):
        z = candidate.redshift
        if z <= 0:
            return

        dz = min(z, hubble_rate(z) / units.c_light * candidate.current_step)
        candidate.redshift = z - dz
        candidate.current.energy = candidate.current.energy * (1.0 - dz / (1.0 + z))

    @property
    def description(self) -> str:
        return (f"Redshift: H0 = {units.H0 * units.Mpc / units.kilometer:g} km/s/Mpc, "
                f"Omega_m = {units.omega_m:g}")
