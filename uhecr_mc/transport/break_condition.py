"""
Break conditions: modules that end a candidate's trajectory.

A condition only decides; what happens on rejection is delegated to its
RejectionPolicy (tag the candidate, optionally deactivate it, optionally
hand it to another module such as an output recorder).
"""

import numpy as np
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from uhecr_mc.core import units
from uhecr_mc.core.particle import Candidate
from uhecr_mc.transport.module import Module


@dataclass
class RejectionPolicy:
    """What to do with a candidate that fulfils a break condition."""

    flag_key: str = 'Rejected'
    flag_value: str = ''
    make_rejected_inactive: bool = True
    reject_action: Optional[Module] = None

    def reject(self, candidate: Candidate):
        candidate.set_property(self.flag_key, self.flag_value)
        if self.make_rejected_inactive:
            candidate.set_active(False)
        if self.reject_action is not None:
            self.reject_action.process(candidate)

    def describe(self) -> str:
        text = (f"Flag: '{self.flag_key}' -> '{self.flag_value}', "
                f"MakeInactive: {'yes' if self.make_rejected_inactive else 'no'}")
        if self.reject_action is not None:
            text += f", Action: {self.reject_action.description}"
        return text


class BreakCondition(Module):
    """Base class for break conditions."""

    def __init__(self):
        self.rejection = RejectionPolicy(flag_value=type(self).__name__)

    def reject(self, candidate: Candidate):
        self.rejection.reject(candidate)

    def set_reject_flag(self, key: str, value: str):
        self.rejection.flag_key = key
        self.rejection.flag_value = value

    def set_make_rejected_inactive(self, make_inactive: bool):
        self.rejection.make_rejected_inactive = make_inactive

    def on_reject(self, action: Optional[Module]):
        """Module invoked with the candidate at the moment of rejection."""
        self.rejection.reject_action = action

    def _threshold_description(self) -> str:
        raise NotImplementedError

    def _default_description(self) -> str:
        return f"{self._threshold_description()}, {self.rejection.describe()}"

    @property
    def description(self) -> str:
        return getattr(self, '_description', None) or self._default_description()

    @description.setter
    def description(self, text: str):
        self._description = text


class MaximumTrajectoryLength(BreakCondition):
    """
    Stops candidates after a maximum trajectory length.

    With observer positions registered, a candidate is also stopped as soon
    as none of the observers can be reached within the remaining length.
    """

    def __init__(self, max_length: float = np.inf):
        super().__init__()
        self.max_length = max_length
        self.observer_positions: List[np.ndarray] = []

    def add_observer_position(self, position: Sequence[float]):
        self.observer_positions.append(np.array(position, dtype=np.float64).reshape(3))

    def process(self, candidate: Candidate):
        length = candidate.trajectory_length
        position = candidate.current.position

        if self.observer_positions:
            in_range = any(
                np.linalg.norm(observer - position) + length < self.max_length
                for observer in self.observer_positions
            )
            if not in_range:
                self.reject(candidate)
                return

        if length >= self.max_length:
            self.reject(candidate)
        else:
            candidate.limit_next_step(self.max_length - length)

    def _threshold_description(self) -> str:
        return f"Maximum trajectory length: {self.max_length / units.Mpc:g} Mpc"

    def _default_description(self) -> str:
        text = super()._default_description()
        if self.observer_positions:
            text += "\n  Observer positions:"
            for observer in self.observer_positions:
                text += f"\n    - {observer / units.Mpc} Mpc"
        return text


class MinimumEnergy(BreakCondition):
    """Stops candidates with energy at or below a threshold."""

    def __init__(self, min_energy: float = 0.0):
        super().__init__()
        self.min_energy = min_energy

    def process(self, candidate: Candidate):
        if candidate.current.energy > self.min_energy:
            return
        self.reject(candidate)

    def _threshold_description(self) -> str:
        return f"Minimum energy: {self.min_energy / units.EeV:g} EeV"


class MinimumRigidity(BreakCondition):
    """Stops candidates with rigidity (energy per charge number) below a threshold."""

    def __init__(self, min_rigidity: float = 0.0):
        super().__init__()
        self.min_rigidity = min_rigidity

    def process(self, candidate: Candidate):
        if candidate.current.rigidity < self.min_rigidity:
            self.reject(candidate)

    def _threshold_description(self) -> str:
        return f"Minimum rigidity: {self.min_rigidity / units.EeV:g} EeV"


class MinimumRedshift(BreakCondition):
    """Stops candidates at or below a redshift."""

    def __init__(self, z_min: float = 0.0):
        super().__init__()
        self.z_min = z_min

    def process(self, candidate: Candidate):
        if candidate.redshift > self.z_min:
            return
        self.reject(candidate)

    def _threshold_description(self) -> str:
        return f"Minimum redshift: {self.z_min:g}"


class MinimumChargeNumber(BreakCondition):
    """Stops candidates with charge number at or below a threshold."""

    def __init__(self, min_charge_number: int = 0):
        super().__init__()
        self.min_charge_number = min_charge_number

    def process(self, candidate: Candidate):
        if candidate.current.charge_number > self.min_charge_number:
            return
        self.reject(candidate)

    def _threshold_description(self) -> str:
        return f"Minimum charge number: {self.min_charge_number}"


class MinimumEnergyPerParticleId(BreakCondition):
    """
    Minimum energy with individual thresholds per particle id.

    Unlisted particles use min_energy_others. The first listed entry that
    matches the id decides.
    """

    def __init__(self, min_energy_others: float = 0.0):
        super().__init__()
        self.min_energy_others = min_energy_others
        self.min_energies: Dict[int, float] = {}

    def add(self, pid: int, min_energy: float):
        # first entry for an id wins
        self.min_energies.setdefault(pid, min_energy)

    def process(self, candidate: Candidate):
        threshold = self.min_energies.get(candidate.current.id, self.min_energy_others)
        if candidate.current.energy < threshold:
            self.reject(candidate)

    def _threshold_description(self) -> str:
        text = f"Minimum energy for non-specified particles: {self.min_energy_others / units.eV:g} eV"
        for pid, energy in self.min_energies.items():
            text += f", for particle {pid}: {energy / units.eV:g} eV"
        return text


class DetectionLength(BreakCondition):
    """
    Fires once, on the step that crosses a given trajectory length.

    Unlike MaximumTrajectoryLength it does not fire again on later steps,
    which emulates a detector plane rather than an absorbing boundary
    (useful with set_make_rejected_inactive(False)).
    """

    def __init__(self, det_length: float = 0.0):
        super().__init__()
        self.det_length = det_length

    def process(self, candidate: Candidate):
        length = candidate.trajectory_length
        step = candidate.current_step

        if length >= self.det_length and length - step < self.det_length:
            self.reject(candidate)
        else:
            candidate.limit_next_step(self.det_length - length)

    def _threshold_description(self) -> str:
        return f"Detection length: {self.det_length / units.kpc:g} kpc"
