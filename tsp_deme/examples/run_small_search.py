import numpy as np

from tsp_deme.cities import Cities
from tsp_deme.evolutionary import EvolutionConfig, EvolutionarySearch


def main():
    rng = np.random.default_rng(7)
    cities = Cities.from_coordinates(rng.uniform(0.0, 100.0, size=(25, 2)))

    cfg = EvolutionConfig(
        population_size=40,
        generations=300,
        mutation_rate=0.1,
        random_seed=7,
    )
    search = EvolutionarySearch(cfg, cities)
    result = search.run(
        on_improvement=lambda gen, tour: print(f"gen {gen}: length={tour.length():.2f}")
    )
    print(f"best length={result.length:.2f} order={result.order}")


if __name__ == "__main__":
    main()
