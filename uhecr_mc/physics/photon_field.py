"""
Photon background fields.

A photon field provides the comoving spectral number density

    n(eps) = eps * dn/deps   [1/m^3]

as a function of photon energy eps [J] and redshift, plus an overall
comoving redshift scaling factor for evolving fields.

Tabulated fields read three plain-text files from the data directory:

    <name>_photonEnergy.txt      photon energies [J], strictly increasing
    <name>_photonDensity.txt     eps * dn/deps [1/m^3] at those energies
    <name>_redshiftScaling.txt   optional: columns z, scaling(z), z starting at 0

References:
    - Kneiske et al., A&A 413, 807 (2004) (IRB model)
    - CRPropa3-data, calc_scaling.py (redshift scaling convention)
"""

import numpy as np
from pathlib import Path
from typing import Optional, Tuple, Union

from uhecr_mc.core import units
from uhecr_mc.core.data import check_grid, data_directory, freeze, read_table
from uhecr_mc.errors import DataFormatError

ArrayLike = Union[float, np.ndarray]


class PhotonField:
    """Abstract base class for photon fields."""

    field_name = 'AbstractPhotonField'
    is_redshift_dependent = False

    def photon_density(self, e_photon: ArrayLike, z: float = 0.0) -> ArrayLike:
        """
        Comoving spectral density eps * dn/deps [1/m^3].

        Parameters:
            e_photon: Photon energy [J] (scalar or array)
            z: Redshift
        """
        raise NotImplementedError

    def redshift_scaling(self, z: float) -> float:
        """Overall comoving scaling factor; 1 for non-evolving fields."""
        return 1.0

    def has_redshift_dependence(self) -> bool:
        return self.is_redshift_dependent

    @property
    def energy_range(self) -> Tuple[float, float]:
        """Photon energies [J] outside which the density is negligible."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}('{self.field_name}')"


class TabularPhotonField(PhotonField):
    """
    Photon field interpolated from data tables.

    Density is linearly interpolated in energy and zero outside the table.
    For evolving fields the density is multiplied by the redshift scaling.
    """

    def __init__(self, field_name: str, is_redshift_dependent: bool = True,
                 data_dir: Optional[Path] = None):
        """
        Load a tabulated photon field.

        Tries a cached '<name>_photonField.npz' first, falls back to the
        plain-text tables.

        Parameters:
            field_name: Name prefix of the data files
            is_redshift_dependent: Whether the field evolves with redshift
            data_dir: Directory with the tables (default: data directory)

        Raises:
            FileNotFoundError: If a required table is missing
            DataFormatError: If a table is malformed
        """
        self.field_name = field_name
        self.is_redshift_dependent = is_redshift_dependent

        if data_dir is None:
            data_dir = data_directory()
        self.data_dir = Path(data_dir)

        energies, densities, redshifts, scalings = self._load_tables()
        self._set_tables(energies, densities, redshifts, scalings)

    @classmethod
    def from_arrays(cls, field_name: str, energies: np.ndarray, densities: np.ndarray,
                    redshifts: Optional[np.ndarray] = None,
                    scalings: Optional[np.ndarray] = None) -> 'TabularPhotonField':
        """
        Build a field from in-memory tables.

        The field is redshift dependent if redshifts and scalings are given.
        """
        field = cls.__new__(cls)
        field.field_name = field_name
        field.is_redshift_dependent = redshifts is not None
        field.data_dir = None
        field._set_tables(energies, densities, redshifts, scalings)
        return field

    def _load_tables(self):
        npz_file = self.data_dir / f'{self.field_name}_photonField.npz'
        if npz_file.exists():
            with np.load(npz_file) as data:
                energies, densities = data['energy'], data['density']
                redshifts = data['redshift'] if 'redshift' in data.files else None
                scalings = data['scaling'] if 'scaling' in data.files else None
            if not self.is_redshift_dependent:
                redshifts = scalings = None
            return energies, densities, redshifts, scalings

        energies = read_table(self.data_dir / f'{self.field_name}_photonEnergy.txt')
        densities = read_table(self.data_dir / f'{self.field_name}_photonDensity.txt')
        if energies.ndim != 1 or densities.ndim != 1:
            raise DataFormatError(
                f"{self.field_name}: energy and density tables must have one column"
            )

        redshifts = scalings = None
        if self.is_redshift_dependent:
            table = read_table(
                self.data_dir / f'{self.field_name}_redshiftScaling.txt', n_columns=2
            )
            redshifts, scalings = table[:, 0], table[:, 1]

        return energies, densities, redshifts, scalings

    def _set_tables(self, energies, densities, redshifts, scalings):
        energies = np.asarray(energies, dtype=np.float64)
        densities = np.asarray(densities, dtype=np.float64)
        check_grid(f"{self.field_name} photon density", energies, densities)
        if energies[0] <= 0:
            raise DataFormatError(f"{self.field_name}: photon energies must be positive")

        self.photon_energies = freeze(energies)
        self.photon_densities = freeze(densities)
        self.redshifts = None
        self.redshift_scalings = None

        if not self.is_redshift_dependent:
            return

        if redshifts is None or scalings is None:
            raise DataFormatError(f"{self.field_name}: redshift scaling table required")
        redshifts = np.asarray(redshifts, dtype=np.float64)
        scalings = np.asarray(scalings, dtype=np.float64)
        check_grid(f"{self.field_name} redshift scaling", redshifts, scalings)
        if redshifts[0] != 0 or scalings[0] <= 0:
            raise DataFormatError(
                f"{self.field_name}: redshift scaling must start at z = 0 with a positive value"
            )

        # scaling is 1 at z = 0 by convention
        self.redshifts = freeze(redshifts)
        self.redshift_scalings = freeze(scalings / scalings[0])

    def photon_density(self, e_photon: ArrayLike, z: float = 0.0) -> ArrayLike:
        density = np.interp(e_photon, self.photon_energies, self.photon_densities,
                            left=0.0, right=0.0)
        if self.is_redshift_dependent:
            density = density * self.redshift_scaling(z)
        if np.ndim(density) == 0:
            return float(density)
        return density

    def redshift_scaling(self, z: float) -> float:
        if not self.is_redshift_dependent:
            return 1.0
        # the field is taken to vanish beyond the tabulated history
        if z > self.redshifts[-1]:
            return 0.0
        return float(np.interp(z, self.redshifts, self.redshift_scalings))

    @property
    def energy_range(self) -> Tuple[float, float]:
        return float(self.photon_energies[0]), float(self.photon_energies[-1])


class BlackbodyPhotonField(PhotonField):
    """Isotropic blackbody photon field (comoving, non-evolving)."""

    # Range in units of kT; x^3 / (e^x - 1) is below 1e-16 of its peak outside
    X_MIN = 1e-4
    X_MAX = 50.0

    def __init__(self, field_name: str, temperature: float):
        """
        Parameters:
            field_name: Field label
            temperature: Blackbody temperature at z = 0 [K]
        """
        if temperature <= 0:
            raise ValueError(f"{field_name}: temperature must be positive")
        self.field_name = field_name
        self.is_redshift_dependent = False
        self.temperature = temperature

    def photon_density(self, e_photon: ArrayLike, z: float = 0.0) -> ArrayLike:
        e_photon = np.asarray(e_photon, dtype=np.float64)
        x = e_photon / (units.k_boltzmann * self.temperature)
        with np.errstate(over='ignore', divide='ignore', invalid='ignore'):
            density = 8.0 * np.pi * (e_photon / (units.h_planck * units.c_light))**3 / np.expm1(x)
        density = np.where((e_photon > 0) & np.isfinite(density), density, 0.0)
        if density.ndim == 0:
            return float(density)
        return density

    @property
    def energy_range(self) -> Tuple[float, float]:
        kT = units.k_boltzmann * self.temperature
        return self.X_MIN * kT, self.X_MAX * kT


class CMB(BlackbodyPhotonField):
    """Cosmic microwave background, blackbody with T = 2.73 K."""

    def __init__(self):
        super().__init__('CMB', 2.73)


class IRB_Kneiske04(TabularPhotonField):
    """Extragalactic background light, Kneiske et al. 2004 best-fit model."""

    def __init__(self, data_dir: Optional[Path] = None):
        super().__init__('IRB_Kneiske04', True, data_dir)


class IRB_Gilmore12(TabularPhotonField):
    """Extragalactic background light, Gilmore et al. 2012."""

    def __init__(self, data_dir: Optional[Path] = None):
        super().__init__('IRB_Gilmore12', True, data_dir)


class IRB_Dominguez11(TabularPhotonField):
    """Extragalactic background light, Dominguez et al. 2011."""

    def __init__(self, data_dir: Optional[Path] = None):
        super().__init__('IRB_Dominguez11', True, data_dir)


# Lookup for configuration files
PHOTON_FIELDS = {
    'CMB': CMB,
    'IRB_Kneiske04': IRB_Kneiske04,
    'IRB_Gilmore12': IRB_Gilmore12,
    'IRB_Dominguez11': IRB_Dominguez11,
}
