"""
Pair production loss length and sampled target photons on the CMB.

Produces two figures:
    - energy loss length E / (dE/dx) of protons at z = 0 and z = 1
    - histogram of sampled target photon energies for a 100 EeV proton,
      compared to the normalised interaction density

Expected results:
    - Loss length minimum of about 1-2 Gpc near 1e19-1e20 eV
    - Photon energies between the pion production threshold and ~10 meV
"""

import numpy as np
import matplotlib.pyplot as plt
from pathlib import Path
import sys

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from uhecr_mc.core import units
from uhecr_mc.physics.pair_production import ElectronPairProduction
from uhecr_mc.physics.photon_sampling import PhotonFieldSampling


def plot_loss_length(ax):
    epp = ElectronPairProduction(verbose=True)
    energies = np.logspace(17.5, 22, 200) * units.eV

    for z in (0.0, 1.0):
        rates = np.array([epp.loss_rate(e, z) for e in energies])
        with np.errstate(divide='ignore'):
            lengths = np.where(rates > 0, energies / rates, np.nan)
        ax.loglog(energies / units.eV, lengths / units.Mpc, label=f'z = {z:g}')

    ax.set_xlabel('Energy [eV]')
    ax.set_ylabel('E / (dE/dx) [Mpc]')
    ax.set_title('Electron pair production, CMB')
    ax.legend()
    ax.grid(True, which='both', alpha=0.3)


def plot_sampled_photons(ax, n_samples: int = 5000):
    sampler = PhotonFieldSampling(bg_flag=1, rng=1)
    energy = 100 * units.EeV

    samples = np.array([sampler.sample_eps(True, energy, 0.0) for _ in range(n_samples)])
    eps_min, eps_max = sampler.eps_range(True, energy / units.GeV, 0.0)

    bins = np.logspace(np.log10(eps_min), np.log10(eps_max), 40)
    ax.hist(samples / units.eV, bins=bins, density=True, alpha=0.6, label='sampled')

    eps = np.logspace(np.log10(eps_min), np.log10(eps_max), 400)
    ax.plot(eps, sampler.pdf(eps * units.eV, True, energy, 0.0) * units.eV, 'k-', label='pdf')

    ax.set_xscale('log')
    ax.set_xlabel('Photon energy [eV]')
    ax.set_ylabel('Probability density [1/eV]')
    ax.set_title('Target photons, 100 EeV proton')
    ax.legend()


if __name__ == "__main__":
    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(12, 5))
    plot_loss_length(ax1)
    plot_sampled_photons(ax2)
    plt.tight_layout()

    output = Path('interactions.png')
    plt.savefig(output, dpi=150)
    print(f"Saved: {output}")
