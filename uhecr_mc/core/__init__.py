"""Core module: Particle state, candidates, units and particle ids."""

from uhecr_mc.core.particle import ParticleState, Candidate

__all__ = ["ParticleState", "Candidate"]
