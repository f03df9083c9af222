"""
Electron-pair production (Bethe-Heitler) as a continuous energy loss.

The loss rate of a proton with Lorentz factor Gamma in a photon field with
spectral density dn/deps is (Blumenthal 1970)

    -dE/dx = alpha r_e^2 (m_e c^2)^2 * int_2^inf dkappa n(kappa m_e c^2 / 2 Gamma) phi(kappa) / kappa^2

with phi(kappa) from the fit of Chodorowski et al. (1992). A nucleus
(A, Z) loses Z^2 times the proton rate at the same energy per nucleon.

References:
    - Blumenthal, Phys. Rev. D 1, 1596 (1970)
    - Chodorowski, Zdziarski & Sikora, ApJ 400, 181 (1992)
"""

import numpy as np
import numba
from pathlib import Path
from typing import Optional, Sequence, Union

from uhecr_mc.core import units
from uhecr_mc.core.data import check_grid, freeze, read_table
from uhecr_mc.core.particle import Candidate
from uhecr_mc.core.particle_id import is_nucleus
from uhecr_mc.physics.integration import gauss_legendre
from uhecr_mc.physics.photon_field import CMB, PhotonField
from uhecr_mc.transport.module import Module


@numba.njit(fastmath=True, cache=True)
def _phi_scalar(kappa: float) -> float:
    """Chodorowski et al. (1992) approximation of the Blumenthal phi function."""
    if kappa <= 2.0:
        return 0.0

    if kappa < 25.0:
        d = kappa - 2.0
        denom = 1.0 + 0.8048 * d + 0.1459 * d**2 + 1.137e-3 * d**3 - 3.879e-6 * d**4
        return np.pi / 12.0 * d**4 / denom

    lnk = np.log(kappa)
    num = -86.07 + 50.96 * lnk - 14.45 * lnk**2 + 8.0 / 3.0 * lnk**3
    denom = 1.0 - (2.910 / kappa + 78.35 / kappa**2 + 1837.0 / kappa**3)
    return kappa * num / denom


@numba.njit(fastmath=True, cache=True)
def _phi_array(kappa: np.ndarray) -> np.ndarray:
    out = np.empty(kappa.size)
    for i in range(kappa.size):
        out[i] = _phi_scalar(kappa[i])
    return out


def blumenthal_phi(kappa):
    """phi(kappa), vectorized; zero at and below the threshold kappa = 2."""
    kappa = np.asarray(kappa, dtype=np.float64)
    flat = np.ascontiguousarray(kappa.ravel())
    return _phi_array(flat).reshape(kappa.shape)


@numba.njit(fastmath=True, cache=True)
def _power_law_interpolate(x_array: np.ndarray, y_array: np.ndarray, x: float) -> float:
    """
    Binary search + power-law interpolation inside the table.

        y(x) = y1 * (x/x1)^a,  a = log(y2/y1) / log(x2/x1)

    Falls back to linear interpolation where a neighbour is zero.
    """
    ir = np.searchsorted(x_array, x)
    if ir <= 0:
        return y_array[0]
    if ir >= len(x_array):
        return y_array[-1]

    y1 = y_array[ir - 1]
    y2 = y_array[ir]
    x1 = x_array[ir - 1]
    x2 = x_array[ir]
    if y1 > 0 and y2 > 0:
        a = np.log(y2 / y1) / np.log(x2 / x1)
        return y1 * (x / x1)**a
    return y1 + (y2 - y1) * (x - x1) / (x2 - x1)


def pair_production_loss_rate(photon_field: PhotonField, energies: np.ndarray,
                              n_intervals: int = 48, order: int = 10) -> np.ndarray:
    """
    Tabulate the proton energy-loss rate against a photon field.

    Parameters:
        photon_field: Photon field at z = 0
        energies: Proton energies [J]
        n_intervals: Quadrature sub-intervals in ln(kappa)
        order: Gauss-Legendre order per sub-interval

    Returns:
        Loss rates [J/m], same shape as energies
    """
    me_c2 = units.electron_rest_energy
    prefactor = units.alpha_finestructure * units.r_electron**2 * me_c2**2
    eps_min, eps_max = photon_field.energy_range

    rates = np.zeros(len(energies))
    for i, energy in enumerate(energies):
        gamma = energy / units.proton_rest_energy
        ln_kmin = np.log(max(2.0, 2.0 * gamma * eps_min / me_c2))
        ln_kmax = np.log(2.0 * gamma * eps_max / me_c2)
        if ln_kmax <= ln_kmin:
            continue

        def integrand(ln_kappa):
            kappa = np.exp(ln_kappa)
            eps = kappa * me_c2 / (2.0 * gamma)
            dn_deps = photon_field.photon_density(eps, 0.0) / eps
            # dkappa = kappa dln(kappa)
            return dn_deps * blumenthal_phi(kappa) / kappa

        rates[i] = prefactor * gauss_legendre(integrand, ln_kmin, ln_kmax,
                                              n_intervals, order)
    return rates


class ElectronPairProduction(Module):
    """
    Continuous energy loss of nuclei by electron-pair production.

    Tables are built once at construction (one per photon field, rates of
    several fields add up) and only read afterwards.

    Edge policy:
        - below the first tabulated energy the loss is zero
        - above the last tabulated energy the rate is extrapolated as
          rate_max * (E / E_max)^EXTRAPOLATION_INDEX
    """

    EXTRAPOLATION_INDEX = 0.4

    def __init__(self, photon_fields: Union[PhotonField, Sequence[PhotonField], None] = None,
                 energies: Optional[np.ndarray] = None,
                 max_loss_fraction: float = 0.1, verbose: bool = False):
        """
        Parameters:
            photon_fields: Photon field or list of fields (default: CMB)
            energies: Energy-per-nucleon grid [J] (default: 1e15-1e23 eV, log spaced)
            max_loss_fraction: Largest relative energy loss per step
            verbose: Print table information
        """
        if photon_fields is None:
            photon_fields = CMB()
        if isinstance(photon_fields, PhotonField):
            photon_fields = [photon_fields]
        if energies is None:
            energies = np.logspace(15, 23, 161) * units.eV

        energies = np.asarray(energies, dtype=np.float64)
        rates = [pair_production_loss_rate(field, energies) for field in photon_fields]
        self._init_tables(energies, rates, list(photon_fields), max_loss_fraction)

        if verbose:
            print(f"Built pair production tables: {len(energies)} energies, "
                  f"fields: {', '.join(f.field_name for f in self.photon_fields)}")

    @classmethod
    def from_table(cls, energies: np.ndarray, rates: np.ndarray,
                   photon_field: Optional[PhotonField] = None,
                   max_loss_fraction: float = 0.1) -> 'ElectronPairProduction':
        """
        Use a precomputed loss table.

        Parameters:
            energies: Energy per nucleon [J], strictly increasing
            rates: Proton loss rates [J/m]
            photon_field: Field providing the redshift scaling (None: no scaling)
        """
        module = cls.__new__(cls)
        energies = np.asarray(energies, dtype=np.float64)
        module._init_tables(energies, [np.asarray(rates, dtype=np.float64)],
                            [photon_field], max_loss_fraction)
        return module

    @classmethod
    def from_file(cls, path: Union[str, Path], photon_field: Optional[PhotonField] = None,
                  max_loss_fraction: float = 0.1) -> 'ElectronPairProduction':
        """Load a table with columns: energy [J], loss rate [J/m]."""
        table = read_table(path, n_columns=2)
        return cls.from_table(table[:, 0], table[:, 1], photon_field, max_loss_fraction)

    def _init_tables(self, energies, rates, photon_fields, max_loss_fraction):
        if not max_loss_fraction > 0:
            raise ValueError("ElectronPairProduction: max_loss_fraction must be positive")
        for rate in rates:
            check_grid("pair production loss table", energies, rate)
        if np.any(energies <= 0):
            raise ValueError("ElectronPairProduction: energies must be positive")

        self.energies = freeze(energies)
        self.rates = freeze(np.vstack(rates))
        self.photon_fields = photon_fields
        self.max_loss_fraction = max_loss_fraction

        log_steps = np.diff(np.log(energies))
        self.log_interpolation = bool(np.allclose(log_steps, log_steps[0], rtol=1e-6))

    @property
    def loss_rate_table(self) -> np.ndarray:
        """Combined proton loss rate at z = 0 on the energy grid [J/m]."""
        return self.rates.sum(axis=0)

    def _interpolate(self, rate: np.ndarray, energy: float) -> float:
        if energy < self.energies[0]:
            return 0.0
        if energy > self.energies[-1]:
            return rate[-1] * (energy / self.energies[-1])**self.EXTRAPOLATION_INDEX
        if self.log_interpolation:
            return float(_power_law_interpolate(self.energies, rate, energy))
        return float(np.interp(energy, self.energies, rate))

    def loss_rate(self, energy_per_nucleon: float, z: float = 0.0) -> float:
        """
        Proton-equivalent energy-loss rate at redshift z [J/m].

        Parameters:
            energy_per_nucleon: Energy per nucleon [J]
            z: Redshift
        """
        energy = energy_per_nucleon * (1.0 + z)
        total = 0.0
        for rate, field in zip(self.rates, self.photon_fields):
            scaling = 1.0 if field is None else field.redshift_scaling(z)
            if scaling > 0:
                total += self._interpolate(rate, energy) * scaling
        return total * (1.0 + z)**2

    def process(self, candidate: Candidate):
        state = candidate.current
        if not is_nucleus(state.id):
            return
        Z = state.charge_number
        if Z < 1:
            return

        A = state.mass_number
        energy = state.energy
        rate = Z * Z * self.loss_rate(energy / A, candidate.redshift)
        if rate <= 0:
            return

        state.energy = max(energy - rate * candidate.current_step, 0.0)
        if state.energy > 0:
            candidate.limit_next_step(self.max_loss_fraction * state.energy / rate)

    @property
    def description(self) -> str:
        names = [f.field_name if f is not None else 'tabulated' for f in self.photon_fields]
        return f"ElectronPairProduction: {', '.join(names)}"
