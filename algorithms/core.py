import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

import numpy as np

from common.errors import ContractViolation
from problems.tsp import tour_length

Tour = List[int]
History = List[float]
AlgorithmResult = Tuple[Tour, float, History]
IterationCallback = Optional[Callable[[int, float, Tour], None]]


class StopReason(Enum):
    COOLED = "cooled"
    BUDGET_EXHAUSTED = "budget_exhausted"
    LOCAL_OPTIMUM = "local_optimum"
    ITERATION_LIMIT = "iteration_limit"
    TRIVIAL = "trivial"  # fewer than two cities, nothing to move


@dataclass
class Candidate:
    """The permutation under optimization and its current cost."""

    permutation: Tour
    cost: float

    def __len__(self) -> int:
        return len(self.permutation)


@dataclass(frozen=True)
class Move:
    """Two distinct positions in a permutation."""

    pos1: int
    pos2: int

    def __post_init__(self):
        if self.pos1 == self.pos2:
            raise ContractViolation(f"move positions must differ, got ({self.pos1}, {self.pos2})")


def sample_move(n: int, rng: np.random.Generator) -> Move:
    """Uniform pair of distinct positions in [0, n); the second is redrawn until it differs."""
    if n < 2:
        raise ContractViolation(f"cannot sample a move for n={n}")
    pos1 = int(rng.integers(n))
    pos2 = int(rng.integers(n))
    while pos2 == pos1:
        pos2 = int(rng.integers(n))
    return Move(pos1, pos2)


def check_cost(candidate: Candidate, D: np.ndarray, label: str = "") -> None:
    """Raise ContractViolation if the running cost no longer matches the tour length."""
    actual = tour_length(candidate.permutation, D)
    if not math.isclose(actual, candidate.cost, rel_tol=1e-9, abs_tol=1e-9):
        raise ContractViolation(
            f"{label}: running cost {candidate.cost} drifted from tour length {actual}"
        )
