import numpy as np
import pytest

from algorithms.core import Candidate, Move, sample_move
from algorithms.moves import MOVE_OPERATORS, make_move_operator
from common.errors import ConfigurationError, ContractViolation
from problems.objective import TSPObjective
from problems.tsp import is_permutation, random_tour, tour_length


def applied(op, perm, move):
    cand = Candidate(list(perm), 0.0)
    op.apply(cand, move)
    return cand.permutation


def test_swap_scenario(line_matrix, line_objective):
    op = make_move_operator("swap")
    op.begin_run(line_objective)
    perm = [0, 1, 2, 3, 4]
    cand = Candidate(perm[:], tour_length(perm, line_matrix))
    move = Move(1, 3)

    delta = op.delta(cand, move)
    assert cand.permutation == perm  # delta does not mutate
    new_perm = applied(op, perm, move)
    assert new_perm == [0, 3, 2, 1, 4]
    assert delta == tour_length(new_perm, line_matrix) - tour_length(perm, line_matrix)
    assert delta == 4


@pytest.mark.parametrize("name, move, expected", [
    ("insertion", Move(1, 3), [0, 2, 3, 1, 4]),
    ("insertion", Move(3, 1), [0, 3, 1, 2, 4]),
    ("insertion", Move(0, 4), [1, 2, 3, 4, 0]),
    ("reversal", Move(1, 3), [0, 3, 2, 1, 4]),
    ("reversal", Move(3, 1), [0, 3, 2, 1, 4]),
    ("reversal", Move(0, 4), [4, 3, 2, 1, 0]),
])
def test_apply(name, move, expected):
    assert applied(make_move_operator(name), [0, 1, 2, 3, 4], move) == expected


@pytest.mark.parametrize("name", sorted(MOVE_OPERATORS))
@pytest.mark.parametrize("symmetric", [True, False])
@pytest.mark.parametrize("n", [2, 3, 5, 6, 7, 8])
def test_delta_matches_full_evaluation(make_matrix, name, symmetric, n):
    D = make_matrix(n, seed=n, symmetric=symmetric)
    objective = TSPObjective(D, seed=n)
    op = make_move_operator(name)
    op.begin_run(objective)
    rng = np.random.default_rng(100 + n)

    for _ in range(3):
        perm = random_tour(n, rng)
        cost = tour_length(perm, D)
        cand = Candidate(perm[:], cost)
        for move in op.neighborhood(n):
            new_perm = applied(op, perm, move)
            assert is_permutation(new_perm, n)
            assert op.delta(cand, move) == tour_length(new_perm, D) - cost, (perm, move)
        assert cand.permutation == perm
    op.end_run(objective)


@pytest.mark.parametrize("name, size", [("swap", 21), ("insertion", 42), ("reversal", 21)])
def test_neighborhood_size(name, size):
    moves = list(make_move_operator(name).neighborhood(7))
    assert len(moves) == size
    assert len(set(moves)) == size


def test_delta_outside_run(line_objective):
    op = make_move_operator("swap")
    cand = Candidate([0, 1, 2, 3, 4], 8.0)
    with pytest.raises(ContractViolation):
        op.delta(cand, Move(0, 1))
    op.begin_run(line_objective)
    op.delta(cand, Move(0, 1))
    op.end_run(line_objective)
    with pytest.raises(ContractViolation):
        op.delta(cand, Move(0, 1))


def test_registry():
    assert set(MOVE_OPERATORS) == {"swap", "insertion", "reversal"}
    assert make_move_operator("swap") is not make_move_operator("swap")
    with pytest.raises(ConfigurationError):
        make_move_operator("3-opt")


def test_move_rejects_equal_positions():
    with pytest.raises(ContractViolation):
        Move(2, 2)


def test_sample_move():
    rng = np.random.default_rng(3)
    for n in (2, 3, 10):
        for _ in range(200):
            move = sample_move(n, rng)
            assert move.pos1 != move.pos2
            assert 0 <= move.pos1 < n and 0 <= move.pos2 < n
    with pytest.raises(ContractViolation):
        sample_move(1, rng)


def test_sample_move_reproducible():
    rng_a, rng_b = np.random.default_rng(5), np.random.default_rng(5)
    a = [sample_move(9, rng_a) for _ in range(50)]
    b = [sample_move(9, rng_b) for _ in range(50)]
    assert a == b
