"""
Move operators for permutation tours.

Every operator prices a move from the edges it touches only. An operator
describes a move through two things:

* `_edges(n, i, j)`: indices of the tour edges that disappear and of the
  edges that appear, where edge k joins positions k and k+1 (mod n);
* `_city_after(p, i, j, k)`: the city at position k once the move is applied.

`delta` combines the two without building the new permutation, so the same
code serves every operator and the result matches a full re-evaluation.
"""
from typing import Dict, Iterable, Iterator, List, Tuple, Type

from algorithms.core import Candidate, Move
from common.errors import ConfigurationError, ContractViolation


class MoveOperator:
    name = ""
    ordered = False  # (i, j) and (j, i) are different moves

    def __init__(self):
        self._dist = None
        self._symmetric = True

    def __repr__(self) -> str:
        return self.name

    def begin_run(self, objective) -> None:
        self._dist = objective.D.tolist()
        self._symmetric = bool(objective.symmetric)

    def end_run(self, objective=None) -> None:
        self._dist = None

    def delta(self, candidate: Candidate, move: Move) -> float:
        d = self._dist
        if d is None:
            raise ContractViolation(f"{self.name}: delta() called outside begin_run/end_run")
        p = candidate.permutation
        n = len(p)
        i, j = self._positions(move)
        removed, added = self._edges(n, i, j)

        before = 0
        for k in set(removed):
            before += d[p[k]][p[(k + 1) % n]]
        after = 0
        for k in set(added):
            after += d[self._city_after(p, i, j, k)][self._city_after(p, i, j, (k + 1) % n)]
        return after - before

    def apply(self, candidate: Candidate, move: Move) -> None:
        raise NotImplementedError

    def neighborhood(self, n: int) -> Iterator[Move]:
        """All distinct moves for a tour of n cities, in canonical order."""
        for i in range(n):
            for j in range(n):
                if i < j or (self.ordered and i != j):
                    yield Move(i, j)

    def _positions(self, move: Move) -> Tuple[int, int]:
        return move.pos1, move.pos2

    def _edges(self, n: int, i: int, j: int) -> Tuple[Iterable[int], Iterable[int]]:
        raise NotImplementedError

    def _city_after(self, p: List[int], i: int, j: int, k: int) -> int:
        raise NotImplementedError


class SwapMove(MoveOperator):
    """Exchange the cities at two positions."""

    name = "swap"

    def apply(self, candidate: Candidate, move: Move) -> None:
        p = candidate.permutation
        i, j = move.pos1, move.pos2
        p[i], p[j] = p[j], p[i]

    def _edges(self, n, i, j):
        touched = ((i - 1) % n, i, (j - 1) % n, j)
        return touched, touched

    def _city_after(self, p, i, j, k):
        if k == i:
            return p[j]
        if k == j:
            return p[i]
        return p[k]


class InsertionMove(MoveOperator):
    """Take the city at pos1 out and reinsert it so that it ends up at pos2."""

    name = "insertion"
    ordered = True

    def apply(self, candidate: Candidate, move: Move) -> None:
        p = candidate.permutation
        p.insert(move.pos2, p.pop(move.pos1))

    def _edges(self, n, i, j):
        if i < j:
            return ((i - 1) % n, i, j), ((i - 1) % n, j - 1, j)
        return ((j - 1) % n, i - 1, i), ((j - 1) % n, j, i)

    def _city_after(self, p, i, j, k):
        if k == j:
            return p[i]
        if i < j and i <= k < j:
            return p[k + 1]
        if j < k <= i:
            return p[k - 1]
        return p[k]


class ReversalMove(MoveOperator):
    """Reverse the segment between two positions, inclusive (2-opt)."""

    name = "reversal"

    def apply(self, candidate: Candidate, move: Move) -> None:
        p = candidate.permutation
        i, j = self._positions(move)
        p[i:j + 1] = p[i:j + 1][::-1]

    def _positions(self, move):
        if move.pos1 < move.pos2:
            return move.pos1, move.pos2
        return move.pos2, move.pos1

    def _edges(self, n, i, j):
        if self._symmetric:
            touched = ((i - 1) % n, j)
        else:
            # inner edges change direction
            touched = tuple(k % n for k in range(i - 1, j + 1))
        return touched, touched

    def _city_after(self, p, i, j, k):
        if i <= k <= j:
            return p[i + j - k]
        return p[k]


MOVE_OPERATORS: Dict[str, Type[MoveOperator]] = {
    op.name: op for op in (SwapMove, InsertionMove, ReversalMove)
}


def make_move_operator(name: str) -> MoveOperator:
    try:
        return MOVE_OPERATORS[name]()
    except KeyError:
        raise ConfigurationError(
            f"unknown move operator {name!r}, expected one of {sorted(MOVE_OPERATORS)}"
        ) from None
