"""
Physical constants and unit scale factors.

All quantities are SI: energies in joules, lengths in metres.
Multiply by a unit to convert into SI, divide to convert back:

    E = 10 * EeV
    print(E / EeV)
"""

# Fundamental constants
c_light = 2.99792458e8              # m/s
c_squared = c_light * c_light
eplus = 1.602176487e-19             # C
h_planck = 6.62606957e-34           # J s
k_boltzmann = 1.3806488e-23         # J/K
alpha_finestructure = 1.0 / 137.035999074
r_electron = 2.817940e-15           # classical electron radius [m]

mass_proton = 1.67262158e-27        # kg
mass_neutron = 1.67492735e-27       # kg
mass_electron = 9.10938291e-31      # kg
amu = 1.660538921e-27               # kg

# Energy
joule = 1.0
eV = eplus
keV = 1e3 * eV
MeV = 1e6 * eV
GeV = 1e9 * eV
TeV = 1e12 * eV
PeV = 1e15 * eV
EeV = 1e18 * eV
ZeV = 1e21 * eV

# Length
meter = 1.0
centimeter = 0.01
kilometer = 1000.0
parsec = 3.0856775807e16
kpc = 1e3 * parsec
Mpc = 1e6 * parsec
Gpc = 1e9 * parsec

# Cross sections
barn = 1e-28
mubarn = 1e-6 * barn

# Cosmology (flat LCDM)
H0 = 67.3 * kilometer / Mpc         # 1/s
omega_m = 0.315
omega_l = 1.0 - omega_m

# Rest energies
proton_rest_energy = mass_proton * c_squared
neutron_rest_energy = mass_neutron * c_squared
electron_rest_energy = mass_electron * c_squared
