"""
Nuclear mass lookup.

The table is read once from 'nuclear_mass.txt' (columns: Z, N, mass [kg])
on first use and shared read-only afterwards.
"""

from functools import lru_cache
from typing import Dict, Tuple

from uhecr_mc.core.data import data_path, read_table
from uhecr_mc.core.particle_id import charge_number, is_nucleus, mass_number
from uhecr_mc.errors import DataFormatError, NucleusNotFoundError

NUCLEAR_MASS_FILE = 'nuclear_mass.txt'


@lru_cache(maxsize=None)
def nuclear_mass_table() -> Dict[Tuple[int, int], float]:
    """
    Load the nuclear mass table.

    Returns:
        Mapping (Z, N) -> mass [kg]; entries with zero mass are omitted

    Raises:
        FileNotFoundError: If the table is missing
        DataFormatError: If the table is malformed
    """
    table = read_table(data_path(NUCLEAR_MASS_FILE), n_columns=3)

    masses = {}
    for Z, N, mass in table:
        if Z != int(Z) or N != int(N) or Z < 0 or N < 0:
            raise DataFormatError(
                f"{NUCLEAR_MASS_FILE}: invalid nucleon numbers Z={Z}, N={N}"
            )
        if mass < 0:
            raise DataFormatError(f"{NUCLEAR_MASS_FILE}: negative mass for Z={Z}, N={N}")
        if mass > 0:
            masses[(int(Z), int(N))] = float(mass)
    return masses


def nucleus_mass(pid: int) -> float:
    """
    Mass of a nucleus [kg].

    Raises:
        ValueError: If pid is not a nucleus id
        NucleusNotFoundError: If the nucleus is not in the table
    """
    if not is_nucleus(pid):
        raise ValueError(f"nucleus_mass: {pid} is not a nucleus id")

    Z = charge_number(pid)
    N = mass_number(pid) - Z
    try:
        return nuclear_mass_table()[(Z, N)]
    except KeyError:
        raise NucleusNotFoundError(f"nucleus_mass: nucleus not found {pid}") from None
