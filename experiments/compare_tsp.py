import logging
import os

import numpy as np

from algorithms.rns_tsp import ImprovementSelectionPolicy, Neighborhood, neighborhood_search_tsp
from algorithms.sa_tsp import simulated_annealing_tsp
from problems.tsp import random_instance, read_weight_matrix
from utils.plot import plot_convergence

WEIGHTS_PATH = "data/weights.csv"
MAX_FES = 20000


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    if os.path.exists(WEIGHTS_PATH):
        D = read_weight_matrix(WEIGHTS_PATH)
    else:
        D = random_instance(60, np.random.default_rng(7))

    runs = {}
    for move in ("swap", "reversal"):
        runs[f"SA/{move}"] = simulated_annealing_tsp(D, move=move, max_fes=MAX_FES)
    for policy in ImprovementSelectionPolicy:
        runs[f"RNS/{policy.value}"] = neighborhood_search_tsp(
            D, policy=policy, neighborhood=Neighborhood.SHUFFLED_SCAN, move="reversal", max_fes=MAX_FES
        )

    print("\n=== RESULTS ===")
    for name, (tour, length, _) in runs.items():
        print(f"{name:<12}: {length:.2f}")
        print(tour)

    plot_convergence({name: hist for name, (_, _, hist) in runs.items()})


if __name__ == "__main__":
    main()
