"""
Particle identity encoding.

Nuclei follow the PDG Monte Carlo numbering scheme:

    id = 1000000000 + 10000 * Z + 10 * A

Leptons and photons keep their plain PDG codes.
"""

from typing import Dict

from uhecr_mc.errors import UnknownParticleError

NUCLEUS_OFFSET = 1000000000

# Charge numbers of non-nuclear particles that may appear in a pipeline
_LEPTON_CHARGE: Dict[int, int] = {
    11: -1, -11: 1,      # electron, positron
    13: -1, -13: 1,      # muon
    12: 0, -12: 0,       # neutrinos
    14: 0, -14: 0,
    16: 0, -16: 0,
    22: 0,               # photon
}


def nucleus_id(A: int, Z: int) -> int:
    """
    Encode mass number and charge number into a nucleus id.

    Parameters:
        A: Mass number
        Z: Charge number

    Returns:
        Nucleus id

    Raises:
        ValueError: If Z > A or either number is negative
    """
    if A < 0 or Z < 0:
        raise ValueError(f"nucleus_id: A ({A}) and Z ({Z}) must be non-negative")
    if Z > A:
        raise ValueError(f"nucleus_id: more protons than nucleons (A={A}, Z={Z})")
    return NUCLEUS_OFFSET + 10000 * Z + 10 * A


def is_nucleus(pid: int) -> bool:
    """Nuclei have ids of the form 100ZZZAAAI."""
    return pid >= NUCLEUS_OFFSET


def charge_number(pid: int) -> int:
    """Charge number Z of a particle id."""
    if is_nucleus(pid):
        return (pid // 10000) % 1000
    try:
        return _LEPTON_CHARGE[pid]
    except KeyError:
        raise UnknownParticleError(f"charge_number: unknown particle id {pid}") from None


def mass_number(pid: int) -> int:
    """Mass number A of a particle id (0 for leptons and photons)."""
    if is_nucleus(pid):
        return (pid // 10) % 1000
    return 0


def nucleus_name(pid: int) -> str:
    """Short label such as 'A=56, Z=26'."""
    if not is_nucleus(pid):
        return str(pid)
    return f"A={mass_number(pid)}, Z={charge_number(pid)}"


PROTON = nucleus_id(1, 1)
NEUTRON = nucleus_id(1, 0)
HELIUM = nucleus_id(4, 2)
IRON = nucleus_id(56, 26)
