import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional, Tuple

import numpy as np

from algorithms.core import (
    AlgorithmResult,
    Candidate,
    History,
    IterationCallback,
    Move,
    StopReason,
    check_cost,
    sample_move,
)
from algorithms.moves import MOVE_OPERATORS, MoveOperator, make_move_operator
from common.errors import ConfigurationError, ContractViolation, require_range
from problems.objective import Oracle, TSPObjective
from problems.tsp import random_tour

logger = logging.getLogger(__name__)

ScoredMove = Tuple[Move, float]


class ImprovementSelectionPolicy(Enum):
    BEST = "best"
    FIRST = "first"
    DECIDE_RANDOMLY_PER_ITERATION = "random"


class Neighborhood(Enum):
    SCAN = "scan"                    # every move, canonical order
    SHUFFLED_SCAN = "shuffled_scan"  # every move, random order
    SAMPLE = "sample"                # `sample_size` random moves


def select_improvement(
    policy: ImprovementSelectionPolicy, scored_moves: Iterable[ScoredMove]
) -> Optional[ScoredMove]:
    """
    Pick the improving move to apply, or None when nothing improves.

    BEST returns the most negative delta (earliest wins ties). FIRST returns
    the first improving move and stops consuming `scored_moves`.
    """
    if policy is ImprovementSelectionPolicy.DECIDE_RANDOMLY_PER_ITERATION:
        raise ContractViolation("resolve the per-iteration policy before selecting")
    best: Optional[ScoredMove] = None
    for move, delta in scored_moves:
        if delta < 0:
            if policy is ImprovementSelectionPolicy.FIRST:
                return move, delta
            if best is None or delta < best[1]:
                best = (move, delta)
    return best


@dataclass
class RNSConfig:
    """Hyper-parameters for the randomized neighborhood search."""

    policy: ImprovementSelectionPolicy = ImprovementSelectionPolicy.BEST
    neighborhood: Neighborhood = Neighborhood.SCAN
    sample_size: int = 1
    first_improvement_probability: float = 0.5  # only for DECIDE_RANDOMLY_PER_ITERATION
    move: str = "swap"
    max_iterations: Optional[int] = None
    check_deltas: bool = False

    def validate(self) -> None:
        if not isinstance(self.policy, ImprovementSelectionPolicy):
            raise ConfigurationError(f"unknown improvement selection policy {self.policy!r}")
        if not isinstance(self.neighborhood, Neighborhood):
            raise ConfigurationError(f"unknown neighborhood {self.neighborhood!r}")
        require_range("sample_size", self.sample_size, low=1)
        require_range("first_improvement_probability", self.first_improvement_probability, 0.0, 1.0)
        if self.max_iterations is not None:
            require_range("max_iterations", self.max_iterations, low=1)
        if self.move not in MOVE_OPERATORS:
            raise ConfigurationError(
                f"unknown move operator {self.move!r}, expected one of {sorted(MOVE_OPERATORS)}"
            )


class RandomizedNeighborhoodSearchTSP:
    """
    Local search that moves to an improving neighbor each iteration.

    The neighborhood is either scanned completely (the run ends at a local
    optimum) or sampled (the run ends on the objective's budget or on
    `max_iterations`).
    """

    def __init__(self, objective: Oracle, cfg: RNSConfig):
        cfg.validate()
        if (cfg.neighborhood is Neighborhood.SAMPLE and cfg.max_iterations is None
                and objective.max_seconds is None):
            # sampling never detects a local optimum and stops registering FEs there
            raise ConfigurationError("a sampled neighborhood needs max_iterations or a time budget")
        self.f = objective
        self.cfg = cfg

        self.stop_reason: Optional[StopReason] = None
        self.iterations = 0
        self.accepted = 0

    def run(self, on_iter: IterationCallback = None) -> AlgorithmResult:
        f, cfg = self.f, self.cfg
        rng: np.random.Generator = f.get_random()
        n = f.n()
        op = make_move_operator(cfg.move)
        exhaustive = cfg.neighborhood is not Neighborhood.SAMPLE

        logger.info("Neighborhood search on n=%d: move=%s policy=%s neighborhood=%s",
                    n, cfg.move, cfg.policy.value, cfg.neighborhood.value)
        self.iterations = self.accepted = 0

        op.begin_run(f)
        try:
            permutation = random_tour(n, rng)
            current = Candidate(permutation, f.evaluate(permutation))
            history: History = [current.cost]

            if n < 2:
                self.stop_reason = StopReason.TRIVIAL
            else:
                while True:
                    if f.should_terminate():
                        self.stop_reason = StopReason.BUDGET_EXHAUSTED
                        break
                    if cfg.max_iterations is not None and self.iterations >= cfg.max_iterations:
                        self.stop_reason = StopReason.ITERATION_LIMIT
                        break

                    policy = self._policy_for_iteration(rng)
                    scored = ((m, op.delta(current, m)) for m in self._moves(op, n, rng))
                    chosen = select_improvement(policy, scored)
                    if chosen is not None:
                        move, delta = chosen
                        current.cost += delta
                        op.apply(current, move)
                        if cfg.check_deltas:
                            check_cost(current, f.D, cfg.move)
                        f.register_fe(current.permutation, current.cost)
                        self.accepted += 1

                    history.append(current.cost)
                    if on_iter:
                        on_iter(self.iterations, current.cost, current.permutation[:])
                    self.iterations += 1

                    if chosen is None and exhaustive:
                        self.stop_reason = StopReason.LOCAL_OPTIMUM
                        break
        finally:
            op.end_run(f)

        logger.info("Neighborhood search stopped (%s) after %d iterations, %d improvements, cost=%.2f",
                    self.stop_reason.value, self.iterations, self.accepted, current.cost)
        return current.permutation, current.cost, history

    def _policy_for_iteration(self, rng: np.random.Generator) -> ImprovementSelectionPolicy:
        policy = self.cfg.policy
        if policy is not ImprovementSelectionPolicy.DECIDE_RANDOMLY_PER_ITERATION:
            return policy
        if rng.random() < self.cfg.first_improvement_probability:
            return ImprovementSelectionPolicy.FIRST
        return ImprovementSelectionPolicy.BEST

    def _moves(self, op: MoveOperator, n: int, rng: np.random.Generator) -> Iterator[Move]:
        kind = self.cfg.neighborhood
        if kind is Neighborhood.SCAN:
            yield from op.neighborhood(n)
        elif kind is Neighborhood.SHUFFLED_SCAN:
            moves = list(op.neighborhood(n))
            for idx in rng.permutation(len(moves)):
                yield moves[idx]
        else:
            for _ in range(self.cfg.sample_size):
                yield sample_move(n, rng)


def neighborhood_search_tsp(
    D: np.ndarray,
    policy: ImprovementSelectionPolicy = ImprovementSelectionPolicy.BEST,
    neighborhood: Neighborhood = Neighborhood.SCAN,
    move: str = "swap",
    sample_size: int = 1,
    first_improvement_probability: float = 0.5,
    max_iterations: Optional[int] = None,
    max_fes: Optional[int] = None,
    max_seconds: Optional[float] = None,
    seed: int = 42,
    on_iter: IterationCallback = None,
) -> AlgorithmResult:
    """
    Backwards-compatible functional wrapper.
    """
    cfg = RNSConfig(
        policy=policy,
        neighborhood=neighborhood,
        sample_size=sample_size,
        first_improvement_probability=first_improvement_probability,
        move=move,
        max_iterations=max_iterations,
    )
    objective = TSPObjective(D, max_fes=max_fes, max_seconds=max_seconds, seed=seed)
    solver = RandomizedNeighborhoodSearchTSP(objective, cfg)
    return solver.run(on_iter)
