import numpy as np
import pytest

from problems.objective import TSPObjective


@pytest.fixture
def make_matrix():
    """Factory for random integer distance matrices, symmetric or not."""
    def _make(n: int, seed: int = 0, symmetric: bool = True) -> np.ndarray:
        rng = np.random.default_rng(seed)
        D = rng.integers(1, 100, size=(n, n))
        if symmetric:
            D = np.triu(D, 1)
            D = D + D.T
        np.fill_diagonal(D, 0)
        return D
    return _make


@pytest.fixture
def line_matrix():
    """Five cities on a line at 0..4, |i - j| apart."""
    idx = np.arange(5)
    return np.abs(idx[:, None] - idx[None, :])


@pytest.fixture
def line_objective(line_matrix):
    return TSPObjective(line_matrix, seed=1)
