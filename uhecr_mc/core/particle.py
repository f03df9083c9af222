"""
Particle state and propagation candidate.

A Candidate wraps the current and initial ParticleState of one simulated
cosmic ray together with its trajectory bookkeeping.
"""

import math
import numpy as np
from typing import Dict, Optional, Sequence

from uhecr_mc.core import units
from uhecr_mc.core.nuclear_mass import nucleus_mass
from uhecr_mc.core.particle_id import charge_number, is_nucleus, mass_number


class ParticleState:
    """Identity, energy, position and direction of a particle."""

    def __init__(self, pid: int = 0, energy: float = 0.0,
                 position: Sequence[float] = (0.0, 0.0, 0.0),
                 direction: Sequence[float] = (-1.0, 0.0, 0.0)):
        """
        Parameters:
            pid: Particle id (see uhecr_mc.core.particle_id)
            energy: Total energy [J]
            position: (x, y, z) position [m]
            direction: (dx, dy, dz) direction (normalized internally)
        """
        self.id = pid
        self.energy = energy
        self.position = position
        self.direction = direction

    @property
    def energy(self) -> float:
        return self._energy

    @energy.setter
    def energy(self, value: float):
        if not value >= 0:
            raise ValueError(f"ParticleState: energy must be non-negative, got {value}")
        self._energy = float(value)

    @property
    def position(self) -> np.ndarray:
        return self._position

    @position.setter
    def position(self, value: Sequence[float]):
        self._position = np.array(value, dtype=np.float64).reshape(3)

    @property
    def direction(self) -> np.ndarray:
        return self._direction

    @direction.setter
    def direction(self, value: Sequence[float]):
        dir_array = np.array(value, dtype=np.float64).reshape(3)
        norm = np.linalg.norm(dir_array)
        if norm == 0 or not np.isfinite(norm):
            raise ValueError("ParticleState: direction must be a finite non-zero vector")
        self._direction = dir_array / norm

    @property
    def charge_number(self) -> int:
        return charge_number(self.id)

    @property
    def mass_number(self) -> int:
        return mass_number(self.id)

    @property
    def rigidity(self) -> float:
        """Energy per charge number [J]; infinite for neutral particles."""
        Z = self.charge_number
        if Z == 0:
            return math.inf
        return self.energy / abs(Z)

    @property
    def mass(self) -> float:
        """Rest mass [kg]."""
        if is_nucleus(self.id):
            return nucleus_mass(self.id)
        if abs(self.id) == 11:
            return units.mass_electron
        return 0.0

    @property
    def lorentz_factor(self) -> float:
        return self.energy / (self.mass * units.c_squared)

    def copy(self) -> 'ParticleState':
        return ParticleState(self.id, self.energy, self.position, self.direction)

    def __repr__(self) -> str:
        return (f"ParticleState(id={self.id}, E={self.energy / units.EeV:.4g} EeV, "
                f"x={self.position / units.Mpc} Mpc, dir={self.direction})")


class Candidate:
    """
    Mutable simulation unit: one particle along its trajectory.

    Modules read the state and may lower the next step with
    limit_next_step(), set tags with set_property() and stop the candidate
    with set_active(False).
    """

    def __init__(self, state: Optional[ParticleState] = None,
                 redshift: float = 0.0, weight: float = 1.0):
        """
        Parameters:
            state: Particle state at the start of the trajectory
            redshift: Redshift at the start of the trajectory
            weight: Statistical weight
        """
        if state is None:
            state = ParticleState()
        self.current = state.copy()
        self.initial = state.copy()
        self.redshift = redshift
        self.weight = weight

        self._trajectory_length = 0.0
        self._current_step = 0.0
        self._next_step = math.inf
        self._active = True
        self.properties: Dict[str, str] = {}

    @property
    def trajectory_length(self) -> float:
        return self._trajectory_length

    @property
    def current_step(self) -> float:
        """Length of the last step [m]."""
        return self._current_step

    @property
    def next_step(self) -> float:
        """Most restrictive step limit requested since the last step [m]."""
        return self._next_step

    @property
    def redshift(self) -> float:
        return self._redshift

    @redshift.setter
    def redshift(self, value: float):
        if not value >= 0:
            raise ValueError(f"Candidate: redshift must be non-negative, got {value}")
        self._redshift = float(value)

    def is_active(self) -> bool:
        return self._active

    def set_active(self, active: bool):
        self._active = bool(active)

    def limit_next_step(self, step: float):
        """
        Request that the next step is no longer than step.

        Non-positive and NaN requests are ignored.
        """
        if not step > 0:
            return
        if step < self._next_step:
            self._next_step = float(step)

    def set_property(self, key: str, value: str):
        self.properties[str(key)] = str(value)

    def get_property(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.properties.get(key, default)

    def has_property(self, key: str) -> bool:
        return key in self.properties

    def remove_property(self, key: str):
        self.properties.pop(key, None)

    def advance(self, step: float):
        """
        Move the particle by step along its direction.

        Called by the ModuleList once per iteration; resets the step limit.
        """
        if not step >= 0:
            raise ValueError(f"Candidate: step must be non-negative, got {step}")
        self.current.position = self.current.position + step * self.current.direction
        self._trajectory_length += step
        self._current_step = step
        self._next_step = math.inf

    def __repr__(self) -> str:
        return (f"Candidate(id={self.current.id}, "
                f"E={self.current.energy / units.EeV:.4g} EeV, "
                f"D={self._trajectory_length / units.Mpc:.4g} Mpc, "
                f"z={self._redshift:.4g}, active={self._active})")
