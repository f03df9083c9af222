"""
UHECR_MC: Ultra-High-Energy Cosmic-Ray Propagation Monte Carlo

Step-wise propagation of cosmic-ray nuclei through extragalactic photon
backgrounds.

Modules:
    core: Particle state, candidates, units, particle ids, nuclear masses
    physics: Photon fields, pair production, redshift, photon sampling
    transport: Module chain, break conditions, candidate output
    config: YAML pipeline configuration
"""

__version__ = "0.1.0"

from uhecr_mc.core.particle import ParticleState, Candidate
from uhecr_mc.physics.photon_field import PhotonField, TabularPhotonField, CMB
from uhecr_mc.physics.pair_production import ElectronPairProduction
from uhecr_mc.physics.photon_sampling import PhotonFieldSampling
from uhecr_mc.physics.redshift import Redshift
from uhecr_mc.transport.module import Module, ModuleList
from uhecr_mc.transport.output import CandidateRecorder

__all__ = [
    "ParticleState",
    "Candidate",
    "PhotonField",
    "TabularPhotonField",
    "CMB",
    "ElectronPairProduction",
    "PhotonFieldSampling",
    "Redshift",
    "Module",
    "ModuleList",
    "CandidateRecorder",
]
