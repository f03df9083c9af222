"""Custom exceptions for the :mod:`uhecr_mc` package."""
from __future__ import annotations


class UhecrError(Exception):
    """Base exception for propagation errors."""


class DataFormatError(UhecrError, ValueError):
    """A data table is malformed (bad columns, unsorted grid, negative values)."""


class NucleusNotFoundError(UhecrError, KeyError):
    """A nucleus is missing from the nuclear mass table."""


class SamplingError(UhecrError, RuntimeError):
    """Monte Carlo sampling could not produce a value."""


class ConfigurationError(UhecrError, ValueError):
    """Invalid pipeline configuration."""


class UnknownParticleError(UhecrError, ValueError):
    """A particle id outside the supported nuclei, leptons and photons."""


__all__ = [
    "UhecrError",
    "DataFormatError",
    "NucleusNotFoundError",
    "SamplingError",
    "ConfigurationError",
    "UnknownParticleError",
]
