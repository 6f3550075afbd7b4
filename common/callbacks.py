# common/callbacks.py
from typing import Dict, List


def make_logger():
    """Callback recording every iteration's state; returns (log, callback)."""
    log: Dict[str, list] = {
        "iter": [],           # [0, 1, 2, ...]
        "cost": [],           # current cost after the iteration
        "permutation": [],    # copy of the permutation after the iteration
    }

    def cb(iter_idx: int, cost: float, permutation: List[int]):
        log["iter"].append(iter_idx)
        log["cost"].append(float(cost))
        log["permutation"].append(list(permutation))
    return log, cb
