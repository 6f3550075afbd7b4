from typing import List, Sequence
import numpy as np


def read_weight_matrix(path: str) -> np.ndarray:
    """Read a weight matrix from csv. Integer-valued files keep an integer dtype."""
    D = np.loadtxt(path, delimiter=',', dtype=float, ndmin=2)
    assert D.shape[0] == D.shape[1], "Weight matrix must be square."
    if np.all(D == np.rint(D)):
        D = D.astype(np.int64)
    return D


def euclidean_matrix(coords: np.ndarray, rounded: bool = True) -> np.ndarray:
    """Distance matrix for 2D points; `rounded` applies the TSPLIB EUC_2D nint rule."""
    coords = np.asarray(coords, dtype=float)
    assert coords.ndim == 2 and coords.shape[1] == 2, "Coordinates must have shape (n, 2)."
    diff = coords[:, None, :] - coords[None, :, :]
    D = np.sqrt((diff ** 2).sum(axis=-1))
    if rounded:
        return np.floor(D + 0.5).astype(np.int64)
    return D


def random_instance(n: int, rng: np.random.Generator, scale: float = 1000.0) -> np.ndarray:
    """Random uniform points in a square, as an EUC_2D distance matrix."""
    return euclidean_matrix(rng.uniform(0.0, scale, size=(n, 2)))


def tour_length(tour: Sequence[int], D: np.ndarray) -> float:
    """Length of the closed tour visiting `tour` in order and returning to the start."""
    idx = np.asarray(tour, dtype=int)
    if idx.size < 2:
        return 0.0
    return float(D[idx, np.roll(idx, -1)].sum())


def random_tour(n: int, rng: np.random.Generator) -> List[int]:
    """Canonical permutation 0..n-1 shuffled in place by `rng`."""
    tour = list(range(n))
    rng.shuffle(tour)
    return tour


def is_permutation(tour: Sequence[int], n: int) -> bool:
    return len(tour) == n and sorted(tour) == list(range(n))
