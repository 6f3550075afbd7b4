"""
Evaluation / termination oracle the local-search engines talk to.

The engines never count evaluations or remember the best tour themselves:
they score the starting tour once through `evaluate`, report every accepted
state through `register_fe` and poll `should_terminate` once per iteration.
"""
import logging
import time
from typing import List, Optional, Protocol, Sequence

import numpy as np

from common.errors import ConfigurationError, require_range
from problems.tsp import tour_length

logger = logging.getLogger(__name__)


class Oracle(Protocol):
    D: np.ndarray
    symmetric: bool
    max_seconds: Optional[float]  # wall-clock budget, None when unbounded

    def n(self) -> int: ...

    def evaluate(self, permutation: Sequence[int]) -> float: ...

    def should_terminate(self) -> bool: ...

    def register_fe(self, permutation: Sequence[int], cost: float) -> None: ...

    def get_random(self) -> np.random.Generator: ...


class TSPObjective:
    """Distance-matrix TSP objective with an FE budget and best-so-far tracking."""

    def __init__(
        self,
        D: np.ndarray,
        max_fes: Optional[int] = None,
        max_seconds: Optional[float] = None,
        seed: int = 0,
    ):
        D = np.asarray(D)
        if D.ndim != 2 or D.shape[0] != D.shape[1]:
            raise ConfigurationError(f"distance matrix must be square, got shape {D.shape}")
        if max_fes is not None:
            require_range("max_fes", max_fes, low=1)
        if max_seconds is not None:
            require_range("max_seconds", max_seconds, low=0, low_inclusive=False)

        self.D = D
        self.symmetric = bool(np.array_equal(D, D.T))
        self.max_fes = max_fes
        self.max_seconds = max_seconds
        self.rng = np.random.default_rng(seed)

        self.fes = 0
        self.best_cost = float("inf")
        self.best_tour: Optional[List[int]] = None
        self._started = time.monotonic()
        self._exhausted_logged = False

    def n(self) -> int:
        return self.D.shape[0]

    def get_random(self) -> np.random.Generator:
        return self.rng

    def evaluate(self, permutation: Sequence[int]) -> float:
        """Full scoring of `permutation`; counts as one FE."""
        cost = tour_length(permutation, self.D)
        self.register_fe(permutation, cost)
        return cost

    def register_fe(self, permutation: Sequence[int], cost: float) -> None:
        self.fes += 1
        if cost < self.best_cost:
            self.best_cost = cost
            self.best_tour = list(permutation)

    def should_terminate(self) -> bool:
        if self.max_fes is not None and self.fes >= self.max_fes:
            return self._exhausted("FE budget of %d reached", self.max_fes)
        if self.max_seconds is not None and time.monotonic() - self._started >= self.max_seconds:
            return self._exhausted("time budget of %.2fs reached", self.max_seconds)
        return False

    def _exhausted(self, msg: str, *args) -> bool:
        if not self._exhausted_logged:
            logger.info("Stopping: " + msg + " (best=%.2f)", *args, self.best_cost)
            self._exhausted_logged = True
        return True
