"""
Target photon sampling for photohadronic (nucleon-photon) interactions.

Draws the energy of the background photon a nucleon of energy E interacts
with at redshift z. The interaction probability per photon energy is

    p(eps) ~ n(eps, z) / eps^2 * int_{s_th}^{s_max} (s - m^2) sigma(s) ds / (8 beta E^2)

with s_max = m^2 + 2 eps E (1 + beta), n the physical photon spectrum
and sigma the total nucleon-photon cross section. Naming and unit
conventions (GeV for nucleon quantities, eV for photons, microbarn for
cross sections) follow SOPHIA to ease comparisons.

The cross section is the SOPHIA parametrisation: nine Breit-Wigner
resonances, a direct pion production channel with power-law threshold
rises, and a high-energy continuum (fragmentation, multipion production,
diffractive scattering).

References:
    - Muecke et al., Comput. Phys. Commun. 124, 290 (2000) (SOPHIA)
    - J. Rachen, PhD thesis, Bonn (1996)
"""

import numpy as np
import numba
from functools import lru_cache
from typing import Optional, Tuple, Union

from uhecr_mc.core import units
from uhecr_mc.errors import SamplingError
from uhecr_mc.physics.integration import cumulative_gauss_legendre
from uhecr_mc.physics.photon_field import CMB, IRB_Kneiske04, PhotonField

# Nucleon masses [GeV/c^2]
M_PROTON = units.proton_rest_energy / units.GeV
M_NEUTRON = units.neutron_rest_energy / units.GeV

# Threshold of single pion production, (m_N + m_pi)^2 [GeV^2]
S_THRESHOLD = 1.1646

# Baryon resonances: mass [GeV], width [GeV], spin ratio, photo-coupling (p, n)
RES_MASS = np.array([1.231, 1.440, 1.515, 1.525, 1.675, 1.680, 1.690, 1.895, 1.950])
RES_WIDTH = np.array([0.11, 0.35, 0.11, 0.1, 0.16, 0.125, 0.29, 0.35, 0.3])
RES_RATIOJ = np.array([1.0, 0.5, 1.0, 0.5, 0.5, 1.5, 1.0, 1.5, 2.0])
RES_BGAMMA_PROTON = np.array([5.6, 0.5, 4.6, 1.9, 1.0, 2.2, 0.5, 0.2, 1.0])
RES_BGAMMA_NEUTRON = np.array([6.1, 0.3, 4.0, 2.5, 0.0, 0.2, 0.6, 0.2, 1.0])

BG_FLAGS = {1: CMB, 2: IRB_Kneiske04}


@numba.njit(fastmath=True, cache=True)
def _power_law_rise(x: float, xth: float, xmax: float, alpha: float) -> float:
    """Threshold rise ~ (x - xth)^(a - alpha) peaking at xmax, falling as x^-alpha."""
    if xth > x:
        return 0.0
    a = alpha * xmax / xth
    prod1 = ((x - xth) / (xmax - xth))**(a - alpha)
    prod2 = (x / xmax)**(-a)
    return prod1 * prod2


@numba.njit(fastmath=True, cache=True)
def _linear_onset(x: float, th: float, w: float) -> float:
    """0 below th, linear rise over width w, 1 above."""
    if x <= th:
        return 0.0
    if x < th + w:
        return (x - th) / w
    return 1.0


@numba.njit(fastmath=True, cache=True)
def _breit_wigner(sigma_0: float, gamma: float, mass_res: float,
                  eps_prime: float, mass: float) -> float:
    """Relativistic Breit-Wigner resonance [mubarn]."""
    s = mass * mass + 2.0 * mass * eps_prime
    gam2s = gamma * gamma * s
    ds = s - mass_res * mass_res
    return sigma_0 * (s / eps_prime / eps_prime) * gam2s / (ds * ds + gam2s)


@numba.njit(fastmath=True, cache=True)
def _cross_section_scalar(eps_prime: float, on_proton: bool) -> float:
    """Total nucleon-photon cross section [mubarn] at rest-frame photon energy [GeV]."""
    mass = M_PROTON if on_proton else M_NEUTRON
    s = mass * mass + 2.0 * mass * eps_prime
    if s < S_THRESHOLD:
        return 0.0

    # resonances
    cross_res = 0.0
    for i in range(9):
        bgamma = RES_BGAMMA_PROTON[i] if on_proton else RES_BGAMMA_NEUTRON[i]
        sigma_0 = 4.893089117 / (mass * mass) * RES_RATIOJ[i] * bgamma
        cross_res += _breit_wigner(sigma_0, RES_WIDTH[i], RES_MASS[i], eps_prime, mass)

    # direct channel: single and double pion production
    cross_dir1 = 0.0
    if 0.1 < eps_prime < 0.6:
        cross_dir1 = (92.7 * _power_law_rise(eps_prime, 0.152, 0.25, 2.0)
                      + 40.0 * np.exp(-(eps_prime - 0.29)**2 / 0.002)
                      - 15.0 * np.exp(-(eps_prime - 0.37)**2 / 0.002))
    cross_dir2 = 37.7 * _power_law_rise(eps_prime, 0.4, 0.6, 2.0)
    cross_dir = cross_dir1 + cross_dir2

    # high-energy continuum
    frag_norm = 80.3 if on_proton else 60.2
    cross_frag = frag_norm * _linear_onset(eps_prime, 0.5, 0.1) * s**(-0.34)

    cs_multidiff = 0.0
    if eps_prime > 0.85:
        multi_norm = 29.3 if on_proton else 26.4
        ss1 = (eps_prime - 0.85) / 0.69
        ss2 = multi_norm * s**(-0.34) + 59.3 * s**0.095
        cs_multidiff = (1.0 - np.exp(-ss1)) * ss2
        cs_multi = 0.89 * cs_multidiff

        ss1 = (eps_prime - 0.85)**0.75 / 0.64
        ss2 = 74.1 * eps_prime**(-0.44) + 62.0 * s**0.08
        cs_tmp = 0.96 * (1.0 - np.exp(-ss1)) * ss2
        cross_diffr1 = 0.14 * cs_tmp
        cross_diffr2 = 0.013 * cs_tmp
        cross_diffr = 0.11 * cs_multidiff

        cs_delta = cross_frag - (cross_diffr1 + cross_diffr2 - cross_diffr)
        if cs_delta < 0.0:
            cross_frag = 0.0
            cs_multi += cs_delta
        else:
            cross_frag = cs_delta
        cs_multidiff = cs_multi + cross_diffr1 + cross_diffr2

    total = cross_res + cross_dir + cs_multidiff + cross_frag
    return max(total, 0.0)


@numba.njit(fastmath=True, cache=True)
def _functs_array(s: np.ndarray, on_proton: bool) -> np.ndarray:
    """(s - m^2) * sigma(s) [GeV^2 mubarn] for a 1D array of s [GeV^2]."""
    mass = M_PROTON if on_proton else M_NEUTRON
    out = np.empty(s.size)
    for i in range(s.size):
        factor = s[i] - mass * mass
        out[i] = factor * _cross_section_scalar(factor / 2.0 / mass, on_proton)
    return out


def functs(s, on_proton: bool):
    """(s - m^2) * sigma(s), vectorized over arrays of any shape."""
    s = np.asarray(s, dtype=np.float64)
    flat = np.ascontiguousarray(s.ravel())
    return _functs_array(flat, on_proton).reshape(s.shape)


def cross_section(eps_prime, on_proton: bool = True):
    """
    Total nucleon-photon cross section [mubarn], vectorized.

    Parameters:
        eps_prime: Photon energy in the nucleon rest frame [GeV]
        on_proton: Proton (True) or neutron (False) target
    """
    eps_prime = np.asarray(eps_prime, dtype=np.float64)
    mass = M_PROTON if on_proton else M_NEUTRON
    flat = np.ascontiguousarray(eps_prime.ravel())

    values = np.zeros(flat.size)
    above = flat > 0
    s = mass * mass + 2.0 * mass * flat[above]
    values[above] = _functs_array(s, on_proton) / (2.0 * mass * flat[above])

    values = values.reshape(eps_prime.shape)
    if values.ndim == 0:
        return float(values)
    return values


class PhotonFieldSampling:
    """
    Rejection sampler for the photon energy of a photohadronic interaction.

    The inner integral over s is tabulated once per nucleon type at
    construction. Normalisation and envelope for a given (nucleon, E, z)
    are computed on first use and cached.

    Example:
        sampler = PhotonFieldSampling(bg_flag=1, rng=42)
        eps = sampler.sample_eps(True, 100 * EeV, 0.0)
    """

    # tabulation of the s-integral: s - s_th from 1e-8 to 1e9 GeV^2
    S_TABLE_POINTS = 801
    # log-spaced points used to bound p(eps) * eps
    ENVELOPE_POINTS = 256
    ENVELOPE_MARGIN = 1.2

    def __init__(self, bg_flag: Optional[int] = None,
                 photon_field: Optional[PhotonField] = None,
                 rng: Union[None, int, np.random.Generator] = None,
                 max_trials: int = 100000):
        """
        Parameters:
            bg_flag: Built-in background, 1: CMB, 2: IRB_Kneiske04
            photon_field: Explicit photon field (instead of bg_flag)
            rng: numpy Generator or seed
            max_trials: Maximum rejection-sampling trials per draw

        Raises:
            ValueError: For an unknown bg_flag or when both sources are given
        """
        if bg_flag is not None and photon_field is not None:
            raise ValueError("PhotonFieldSampling: give either bg_flag or photon_field")
        if photon_field is None:
            if bg_flag is None:
                bg_flag = 1
            if bg_flag not in BG_FLAGS:
                raise ValueError(f"PhotonFieldSampling: unknown bg_flag {bg_flag}, "
                                 f"available: {sorted(BG_FLAGS)}")
            photon_field = BG_FLAGS[bg_flag]()
        if max_trials < 1:
            raise ValueError("PhotonFieldSampling: max_trials must be at least 1")

        self.bg_flag = bg_flag
        self.photon_field = photon_field
        self.max_trials = max_trials
        self.rng = rng if isinstance(rng, np.random.Generator) else np.random.default_rng(rng)

        self._s_grid = S_THRESHOLD + np.concatenate(
            ([0.0], np.logspace(-8, 9, self.S_TABLE_POINTS - 1))
        )
        self._s_integral = {
            on_proton: cumulative_gauss_legendre(
                lambda s, on_proton=on_proton: functs(s, on_proton), self._s_grid
            )
            for on_proton in (True, False)
        }
        for table in self._s_integral.values():
            table.flags.writeable = False

        self._envelope = lru_cache(maxsize=256)(self._compute_envelope)

    # ------------------------------------------------------------------
    # Target density

    def photon_density(self, eps, z_in: float):
        """
        Physical photon spectrum dn/deps [1/(eV cm^3)] at redshift z.

        Parameters:
            eps: Photon energy [eV]
            z_in: Redshift
        """
        eps0 = np.asarray(eps, dtype=np.float64) * units.eV / (1.0 + z_in)
        with np.errstate(divide='ignore', invalid='ignore'):
            dn_deps = np.where(eps0 > 0,
                               self.photon_field.photon_density(eps0, z_in) / eps0, 0.0)
        return (1.0 + z_in)**2 * dn_deps * units.eV * 1e-6

    def s_integral(self, s_max, on_proton: bool):
        """int_{s_th}^{s_max} (s - m^2) sigma(s) ds [GeV^4 mubarn]; constant beyond the table."""
        return np.interp(s_max, self._s_grid, self._s_integral[on_proton], left=0.0)

    def prob_eps(self, eps, on_proton: bool, E_in: float, z_in: float):
        """
        Unnormalised probability to interact with a photon of energy eps.

        Parameters:
            eps: Photon energy [eV] (scalar or array)
            on_proton: Proton or neutron
            E_in: Nucleon energy [GeV]
            z_in: Redshift
        """
        mass = M_PROTON if on_proton else M_NEUTRON
        gamma = E_in / mass
        beta = np.sqrt(1.0 - 1.0 / gamma / gamma)

        eps = np.asarray(eps, dtype=np.float64)
        s_max = mass * mass + 2.0 * eps * 1e-9 * E_in * (1.0 + beta)
        integral = np.where(s_max > S_THRESHOLD, self.s_integral(s_max, on_proton), 0.0)
        with np.errstate(divide='ignore', invalid='ignore'):
            prob = np.where(eps > 0,
                            self.photon_density(eps, z_in) / eps / eps * integral
                            / (8.0 * beta * E_in * E_in) * 1e18,
                            0.0)
        if prob.ndim == 0:
            return float(prob)
        return prob

    def eps_range(self, on_proton: bool, E_in: float, z_in: float) -> Tuple[float, float]:
        """
        Accessible photon energies [eV]: from the pion production threshold
        to the upper end of the field at redshift z.
        """
        mass = M_PROTON if on_proton else M_NEUTRON
        momentum = np.sqrt(E_in * E_in - mass * mass)
        eps_threshold = 1e9 * (S_THRESHOLD - mass * mass) / 2.0 / (E_in + momentum)

        field_min, field_max = self.photon_field.energy_range
        eps_min = max(eps_threshold, field_min / units.eV * (1.0 + z_in))
        eps_max = field_max / units.eV * (1.0 + z_in)
        return eps_min, eps_max

    def _compute_envelope(self, on_proton: bool, E_in: float, z_in: float):
        eps_min, eps_max = self.eps_range(on_proton, E_in, z_in)
        if not eps_min < eps_max:
            raise SamplingError(
                f"sample_eps: no photons above interaction threshold "
                f"(E = {E_in:.4g} GeV, z = {z_in:g}, field {self.photon_field.field_name})"
            )

        log_min, log_max = np.log(eps_min), np.log(eps_max)

        # ln(eps) grid; table nodes keep narrow lines inside the grid
        grid = np.linspace(log_min, log_max, self.ENVELOPE_POINTS)
        nodes = getattr(self.photon_field, 'photon_energies', None)
        if nodes is not None:
            nodes = nodes * (1.0 + z_in) / units.eV
            nodes = nodes[(nodes > eps_min) & (nodes < eps_max)]
            grid = np.union1d(grid, np.log(nodes))

        def integrand(log_eps):
            eps = np.exp(log_eps)
            return self.prob_eps(eps, on_proton, E_in, z_in) * eps

        # normalisation over ln(eps): int p(eps) eps dln(eps)
        norm = cumulative_gauss_legendre(integrand, grid)[-1]
        if not norm > 0:
            raise SamplingError(
                f"sample_eps: vanishing interaction probability "
                f"(E = {E_in:.4g} GeV, z = {z_in:g}, field {self.photon_field.field_name})"
            )

        # bound of the normalised density in ln(eps)
        bound = np.max(integrand(grid)) / norm * self.ENVELOPE_MARGIN
        return log_min, log_max, norm, bound

    # ------------------------------------------------------------------
    # Public interface

    def pdf(self, eps, on_proton: bool, E_in: float, z_in: float):
        """
        Normalised probability density of the sampled photon energy [1/J].

        Parameters:
            eps: Photon energy [J]
            on_proton: Proton or neutron
            E_in: Nucleon energy [J]
            z_in: Redshift
        """
        E_GeV = self._check_energy(on_proton, E_in)
        _, _, norm, _ = self._envelope(bool(on_proton), E_GeV, float(z_in))
        eps_min, eps_max = self.eps_range(on_proton, E_GeV, z_in)
        eps_eV = np.asarray(eps, dtype=np.float64) / units.eV
        density = self.prob_eps(eps_eV, on_proton, E_GeV, z_in) / norm / units.eV
        return np.where((eps_eV >= eps_min) & (eps_eV <= eps_max), density, 0.0)

    def sample_eps(self, on_proton: bool, E_in: float, z_in: float) -> float:
        """
        Sample the energy of the target photon.

        Trial energies are drawn uniformly in ln(eps) and accepted with
        probability p(eps) * eps / bound.

        Parameters:
            on_proton: Proton (True) or neutron (False)
            E_in: Nucleon energy [J]
            z_in: Redshift

        Returns:
            Photon energy [J]

        Raises:
            SamplingError: If no photon is accessible, max_trials is exhausted
                or a trial density exceeds the envelope bound
        """
        E_GeV = self._check_energy(on_proton, E_in)
        log_min, log_max, norm, bound = self._envelope(bool(on_proton), E_GeV, float(z_in))
        log_width = log_max - log_min

        for _ in range(self.max_trials):
            log_eps = log_min + log_width * self.rng.random()
            eps = np.exp(log_eps)
            density = self.prob_eps(eps, on_proton, E_GeV, z_in) * eps / norm
            if density > bound:
                raise SamplingError(
                    f"sample_eps: density {density:.4g} above envelope bound {bound:.4g} "
                    f"at eps = {eps:.4g} eV (E = {E_GeV:.4g} GeV, z = {z_in:g})"
                )
            if self.rng.random() * bound <= density:
                return eps * units.eV

        raise SamplingError(
            f"sample_eps: no photon accepted after {self.max_trials} trials "
            f"(E = {E_GeV:.4g} GeV, z = {z_in:g})"
        )

    @staticmethod
    def _check_energy(on_proton: bool, E_in: float) -> float:
        mass = M_PROTON if on_proton else M_NEUTRON
        E_GeV = E_in / units.GeV
        if not E_GeV > mass:
            raise ValueError(f"sample_eps: nucleon energy {E_GeV:g} GeV below rest mass")
        return float(E_GeV)
