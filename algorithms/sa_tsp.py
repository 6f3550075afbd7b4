import logging
import math
from dataclasses import dataclass
from typing import Iterator, List, Mapping, Optional

import numpy as np

from algorithms.core import (
    AlgorithmResult,
    Candidate,
    History,
    IterationCallback,
    StopReason,
    check_cost,
    sample_move,
)
from algorithms.moves import MOVE_OPERATORS, make_move_operator
from common.errors import ConfigurationError, ContractViolation, parse_number, require_range
from problems.objective import Oracle, TSPObjective
from problems.tsp import random_tour

logger = logging.getLogger(__name__)

# The system counts as frozen once the temperature is at or below this value.
FROZEN_TEMPERATURE = 1.0
MAX_INITIAL_TEMPERATURE = 1e10


def metropolis_probability(delta: float, temperature: float) -> float:
    """P(accept) under Metropolis: 1 for improving moves, exp(-delta/T) otherwise."""
    if delta < 0:
        return 1.0
    return math.exp(-delta / temperature)


def accept(
    delta: float,
    temperature: float,
    critical_temperature: float,
    constant_probability: float,
    draw: float,
) -> bool:
    """
    Hybrid acceptance test.

    A move passes if its Metropolis probability beats `draw`, or if the system
    is below `critical_temperature` and `constant_probability` beats the same
    `draw`. A single uniform draw serves both checks.
    """
    if temperature <= 0:
        raise ContractViolation(f"temperature must stay positive, got {temperature}")
    if delta < 0:
        return True
    if metropolis_probability(delta, temperature) > draw:
        return True
    return temperature < critical_temperature and constant_probability > draw


class GeometricCooling:
    """T <- T * rate after every iteration."""

    def __init__(self, rate: float):
        self.rate = rate

    def next(self, temperature: float) -> float:
        return temperature * self.rate

    def schedule(self, start: float, end: float = FROZEN_TEMPERATURE) -> Iterator[float]:
        """Temperatures seen by successive iterations, from `start` while above `end`."""
        temperature = start
        while temperature > end:
            yield temperature
            temperature = self.next(temperature)


@dataclass
class SAConfig:
    """Hyper-parameters for the Simulated Annealing solver."""

    initial_temperature: float = 10000.0
    cooling_rate: float = 0.997
    critical_temperature: float = 2.0      # below this the constant channel opens
    constant_probability: float = 0.07
    move: str = "swap"
    check_deltas: bool = False

    # keys used when the configuration comes in as text parameters
    PARAM_KEYS = {
        "initialTemperature": "initial_temperature",
        "coolingRate": "cooling_rate",
        "criticalTemp": "critical_temperature",
        "constantProbability": "constant_probability",
        "updateOperation": "move",
    }

    def validate(self) -> None:
        require_range("cooling_rate", self.cooling_rate, 0.0, 1.0,
                      low_inclusive=False, high_inclusive=False)
        require_range("initial_temperature", self.initial_temperature, 0.0, MAX_INITIAL_TEMPERATURE)
        require_range("critical_temperature", self.critical_temperature,
                      self.initial_temperature / 10000.0, self.initial_temperature)
        require_range("constant_probability", self.constant_probability, 0.0, 0.1)
        if self.move not in MOVE_OPERATORS:
            raise ConfigurationError(
                f"unknown move operator {self.move!r}, expected one of {sorted(MOVE_OPERATORS)}"
            )

    @classmethod
    def from_params(cls, params: Mapping[str, object]) -> "SAConfig":
        """Build a config from `initialTemperature=...`-style parameters; unset keys keep defaults."""
        unknown = set(params) - set(cls.PARAM_KEYS)
        if unknown:
            raise ConfigurationError(f"unknown parameters: {sorted(unknown)}")
        kwargs = {}
        for key, value in params.items():
            field_name = cls.PARAM_KEYS[key]
            kwargs[field_name] = str(value) if field_name == "move" else parse_number(key, value)
        cfg = cls(**kwargs)
        cfg.validate()
        return cfg

    @classmethod
    def parameters(cls) -> List[str]:
        """One line per text parameter key, saying what it controls."""
        return [
            "updateOperation: the move operator used to perturb the tour",
            "initialTemperature: the temperature the annealing starts from",
            "coolingRate: factor applied to the temperature after every iteration "
            "(e.g. 0.99 turns T into 0.99*T)",
            "criticalTemp: below this temperature the constant acceptance probability "
            "applies alongside the Metropolis criterion",
            "constantProbability: the constant acceptance probability",
        ]

    def describe(self) -> List[str]:
        return [
            f"updateOperation: {self.move}",
            f"initialTemperature: {self.initial_temperature}",
            f"coolingRate: {self.cooling_rate}",
            f"criticalTemp: {self.critical_temperature}",
            f"constantProbability: {self.constant_probability}",
        ]


class SimulatedAnnealingTSP:
    """
    Simulated annealing over permutations.

    Each iteration draws a random move, prices it with the move operator's
    delta, and keeps it under the hybrid acceptance rule. The temperature
    cools geometrically after every iteration, accepted or not. The run ends
    when the system is frozen or the objective asks to stop.
    """

    def __init__(self, objective: Oracle, cfg: SAConfig):
        cfg.validate()
        self.f = objective
        self.cfg = cfg
        self.cooling = GeometricCooling(cfg.cooling_rate)

        self.stop_reason: Optional[StopReason] = None
        self.iterations = 0
        self.accepted = 0

    def run(self, on_iter: IterationCallback = None) -> AlgorithmResult:
        f, cfg = self.f, self.cfg
        rng: np.random.Generator = f.get_random()
        n = f.n()
        op = make_move_operator(cfg.move)

        logger.info("Simulated annealing on n=%d: %s", n, ", ".join(cfg.describe()))
        self.iterations = self.accepted = 0

        op.begin_run(f)
        try:
            permutation = random_tour(n, rng)
            current = Candidate(permutation, f.evaluate(permutation))
            history: History = [current.cost]

            temperature = float(cfg.initial_temperature)
            if n < 2:
                self.stop_reason = StopReason.TRIVIAL
            else:
                self.stop_reason = StopReason.COOLED
                while temperature > FROZEN_TEMPERATURE:
                    if f.should_terminate():
                        self.stop_reason = StopReason.BUDGET_EXHAUSTED
                        break

                    move = sample_move(n, rng)
                    delta = op.delta(current, move)
                    draw = rng.random()
                    if accept(delta, temperature, cfg.critical_temperature,
                              cfg.constant_probability, draw):
                        current.cost += delta
                        op.apply(current, move)
                        if cfg.check_deltas:
                            check_cost(current, f.D, cfg.move)
                        f.register_fe(current.permutation, current.cost)
                        self.accepted += 1

                    temperature = self.cooling.next(temperature)
                    history.append(current.cost)
                    if on_iter:
                        on_iter(self.iterations, current.cost, current.permutation[:])
                    self.iterations += 1
        finally:
            op.end_run(f)

        logger.info("Simulated annealing stopped (%s) after %d iterations, %d accepted, cost=%.2f",
                    self.stop_reason.value, self.iterations, self.accepted, current.cost)
        return current.permutation, current.cost, history


def simulated_annealing_tsp(
    D: np.ndarray,
    initial_temperature: float = 10000.0,
    cooling_rate: float = 0.997,
    critical_temperature: float = 2.0,
    constant_probability: float = 0.07,
    move: str = "swap",
    max_fes: Optional[int] = None,
    seed: int = 123,
    on_iter: IterationCallback = None,
) -> AlgorithmResult:
    """
    Convenience wrapper: builds the objective and config, runs one annealing.
    """
    cfg = SAConfig(
        initial_temperature=initial_temperature,
        cooling_rate=cooling_rate,
        critical_temperature=critical_temperature,
        constant_probability=constant_probability,
        move=move,
    )
    solver = SimulatedAnnealingTSP(TSPObjective(D, max_fes=max_fes, seed=seed), cfg)
    return solver.run(on_iter)
