"""
Module chain and propagation loop.

Every module sees the candidate once per iteration through process().
Modules never move the candidate themselves; they request step limits
with Candidate.limit_next_step() and the ModuleList advances the
candidate by the most restrictive request.
"""

import time
from typing import Iterable, Iterator, List, Optional

from tqdm import tqdm

from uhecr_mc.core import units
from uhecr_mc.core.particle import Candidate
from uhecr_mc.errors import UhecrError


class Module:
    """Base class for physics and control modules."""

    def process(self, candidate: Candidate):
        raise NotImplementedError

    @property
    def description(self) -> str:
        return getattr(self, '_description', None) or type(self).__name__

    @description.setter
    def description(self, text: str):
        self._description = text

    def __repr__(self) -> str:
        return f"<{type(self).__name__}: {self.description}>"


class ModuleList:
    """
    Ordered module chain that propagates candidates.

    Example:
        sim = ModuleList(max_step=1 * Mpc)
        sim.add(ElectronPairProduction(CMB()))
        sim.add(MaximumTrajectoryLength(100 * Mpc))
        sim.run(candidate)
    """

    def __init__(self, max_step: float = 1.0 * units.Mpc, verbose: bool = False):
        """
        Parameters:
            max_step: Step taken when no module requests a shorter one [m]
            verbose: Print progress information
        """
        if not max_step > 0:
            raise ValueError(f"ModuleList: max_step must be positive, got {max_step}")
        self.max_step = max_step
        self.verbose = verbose
        self.modules: List[Module] = []

    def add(self, module: Module) -> 'ModuleList':
        self.modules.append(module)
        return self

    def remove(self, index: int):
        del self.modules[index]

    def __len__(self) -> int:
        return len(self.modules)

    def __iter__(self) -> Iterator[Module]:
        return iter(self.modules)

    def __getitem__(self, index: int) -> Module:
        return self.modules[index]

    def process(self, candidate: Candidate):
        """One pass over all modules; stops early once the candidate is inactive."""
        for module in self.modules:
            module.process(candidate)
            if not candidate.is_active():
                break

    def run(self, candidate: Candidate) -> int:
        """
        Propagate one candidate until it becomes inactive.

        A first pass at the current position lets every module request a
        step limit (or reject) before anything moves.

        Returns:
            Number of steps taken
        """
        n_steps = 0
        if candidate.is_active():
            self.process(candidate)

        while candidate.is_active():
            step = min(candidate.next_step, self.max_step)
            candidate.advance(step)
            self.process(candidate)
            n_steps += 1

        return n_steps

    def run_all(self, candidates: Iterable[Candidate],
                show_progress: Optional[bool] = None) -> dict:
        """
        Propagate candidates one after another.

        Errors raised while propagating a candidate stop only that candidate:
        it is tagged 'Error' and deactivated.

        Parameters:
            candidates: Candidates to propagate
            show_progress: Show a tqdm progress bar (default: verbose)

        Returns:
            Dictionary with run statistics
        """
        if show_progress is None:
            show_progress = self.verbose

        n_candidates = 0
        n_steps = 0
        n_failed = 0
        start_time = time.time()

        if self.verbose:
            print(f"\nPropagating candidates through {len(self.modules)} modules...")
            print(f"  Max step: {self.max_step / units.Mpc:g} Mpc")

        for candidate in tqdm(candidates, desc='Propagating', unit='cand',
                              disable=not show_progress):
            n_candidates += 1
            try:
                n_steps += self.run(candidate)
            except UhecrError as e:
                candidate.set_property('Error', str(e))
                candidate.set_active(False)
                n_failed += 1
                if self.verbose:
                    print(f"  Candidate {n_candidates} failed: {e}")

        elapsed = time.time() - start_time

        if self.verbose:
            print(f"\nPropagation complete!")
            print(f"  Candidates: {n_candidates}")
            print(f"  Total steps: {n_steps}")
            print(f"  Failed: {n_failed}")
            print(f"  Time: {elapsed:.2f}s")

        return {
            'n_candidates': n_candidates,
            'n_steps': n_steps,
            'n_failed': n_failed,
            'elapsed_time': elapsed,
        }

    @property
    def description(self) -> str:
        lines = [f"ModuleList: {len(self.modules)} modules, "
                 f"max step {self.max_step / units.Mpc:g} Mpc"]
        for module in self.modules:
            lines.append(f"  {module.description}")
        return "\n".join(lines)
