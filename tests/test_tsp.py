import time

import numpy as np
import pytest

from common.errors import ConfigurationError, parse_number, require_range
from problems.objective import TSPObjective
from problems.tsp import (
    euclidean_matrix,
    is_permutation,
    random_instance,
    random_tour,
    read_weight_matrix,
    tour_length,
)


def test_tour_length_is_cyclic(line_matrix):
    assert tour_length([0, 1, 2, 3, 4], line_matrix) == 8
    assert tour_length([0, 3, 2, 1, 4], line_matrix) == 12
    assert tour_length([3], line_matrix) == 0.0


def test_euclidean_matrix_rounding():
    D = euclidean_matrix(np.array([[0, 0], [3, 4], [0, 1.4]]))
    assert D.dtype == np.int64
    assert D[0, 1] == 5 and D[1, 0] == 5
    assert D[0, 2] == 1
    assert np.all(np.diag(D) == 0)


def test_random_instance_is_symmetric():
    D = random_instance(12, np.random.default_rng(0))
    assert D.shape == (12, 12)
    assert np.array_equal(D, D.T)


def test_read_weight_matrix(tmp_path):
    path = tmp_path / "w.csv"
    path.write_text("0,2,3\n2,0,4\n3,4,0\n")
    D = read_weight_matrix(str(path))
    assert D.dtype == np.int64
    assert D[1, 2] == 4


def test_random_tour():
    tour = random_tour(10, np.random.default_rng(4))
    assert is_permutation(tour, 10)
    assert tour == random_tour(10, np.random.default_rng(4))
    assert not is_permutation([0, 1, 1], 3)
    assert not is_permutation([0, 1], 3)


def test_objective_counts_and_tracks_best(line_matrix):
    f = TSPObjective(line_matrix, max_fes=3)
    assert f.n() == 5
    assert f.symmetric
    assert f.evaluate([0, 3, 2, 1, 4]) == 12
    assert not f.should_terminate()
    perm = [0, 1, 2, 3, 4]
    f.register_fe(perm, 8)
    perm[0], perm[1] = perm[1], perm[0]
    assert f.best_cost == 8
    assert f.best_tour == [0, 1, 2, 3, 4]
    f.register_fe([0, 3, 2, 1, 4], 12)
    assert f.fes == 3
    assert f.should_terminate()
    assert f.best_cost == 8


def test_objective_without_budget_never_stops(line_matrix):
    f = TSPObjective(line_matrix)
    for _ in range(100):
        f.register_fe([0, 1, 2, 3, 4], 8)
    assert not f.should_terminate()


def test_objective_validation():
    with pytest.raises(ConfigurationError):
        TSPObjective(np.zeros((3, 4)))
    with pytest.raises(ConfigurationError):
        TSPObjective(np.zeros((3, 3)), max_fes=0)
    with pytest.raises(ConfigurationError):
        TSPObjective(np.zeros((3, 3)), max_seconds=0)
    assert not TSPObjective(np.array([[0, 1], [2, 0]])).symmetric


def test_require_range():
    assert require_range("x", 0.5, 0, 1) == 0.5
    assert require_range("x", 0, 0, 1) == 0
    with pytest.raises(ConfigurationError):
        require_range("x", 0, 0, 1, low_inclusive=False)
    with pytest.raises(ConfigurationError):
        require_range("x", 1, 0, 1, high_inclusive=False)
    with pytest.raises(ConfigurationError):
        require_range("x", float("nan"), 0, 1)


def test_parse_number():
    assert parse_number("x", " 0.25 ") == 0.25
    assert parse_number("x", 3) == 3.0
    with pytest.raises(ConfigurationError):
        parse_number("x", "warm")
    with pytest.raises(ConfigurationError):
        parse_number("x", True)
    with pytest.raises(ConfigurationError):
        parse_number("x", None)


def test_objective_time_budget(line_matrix):
    f = TSPObjective(line_matrix, max_seconds=0.01)
    assert not f.should_terminate()
    time.sleep(0.02)
    assert f.should_terminate()
    assert f.fes == 0
