"""Physics module: Photon fields, energy losses, interaction sampling."""

from uhecr_mc.physics.photon_field import PhotonField, TabularPhotonField, BlackbodyPhotonField, CMB
from uhecr_mc.physics.pair_production import ElectronPairProduction
from uhecr_mc.physics.photon_sampling import PhotonFieldSampling
from uhecr_mc.physics.redshift import Redshift

__all__ = [
    "PhotonField",
    "TabularPhotonField",
    "BlackbodyPhotonField",
    "CMB",
    "ElectronPairProduction",
    "PhotonFieldSampling",
    "Redshift",
]
