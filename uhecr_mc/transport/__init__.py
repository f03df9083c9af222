"""Transport module: Module chain, break conditions and output."""

from uhecr_mc.transport.module import Module, ModuleList
from uhecr_mc.transport.output import CandidateRecorder

__all__ = ["Module", "ModuleList", "CandidateRecorder"]
