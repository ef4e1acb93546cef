import math
import random
from typing import Dict, List, Sequence, Tuple

from .cities import Cities
from .tour import Tour


# Removals between exact recomputations of the running fitness total.
RESUM_INTERVAL = 32


class SelectionError(RuntimeError):
    """Raised when a roulette-wheel walk runs off the end of its pool."""


class SelectionPool:
    """
    Tours still eligible for selection in the current generation.

    ``total`` is kept as a running sum: each ``take`` subtracts the removed
    tour's fitness, and every ``RESUM_INTERVAL`` removals it is recomputed
    exactly from the remaining entries.
    """

    def __init__(self, tours: Sequence[Tour]):
        self.tours: List[Tour] = list(tours)
        self.fitnesses: List[float] = [t.fitness() for t in self.tours]
        self.total = math.fsum(self.fitnesses)
        self.removed = 0

    def __len__(self) -> int:
        return len(self.tours)

    def take(self, idx: int) -> Tour:
        tour = _swap_remove(self.tours, idx)
        self.total -= _swap_remove(self.fitnesses, idx)
        self.removed += 1
        if self.removed % RESUM_INTERVAL == 0:
            self.total = math.fsum(self.fitnesses)
        return tour


class Population:
    """
    One generation of tours evolved by roulette-wheel selection, swap
    mutation and ordered crossover.

    The population owns its tours. ``advance_generation`` draws parent pairs
    from a ``SelectionPool`` over ``individuals`` and installs the children as
    the new ``individuals`` once all of them exist.
    """

    def __init__(
        self,
        cities: Cities,
        population_size: int,
        mutation_rate: float,
        rng: random.Random = None,
    ):
        if population_size < 0:
            raise ValueError(f"population_size must be non-negative, got {population_size}.")
        if not 0.0 <= mutation_rate <= 1.0:
            raise ValueError(f"mutation_rate must be within [0, 1], got {mutation_rate}.")
        self.cities = cities
        self.mutation_rate = mutation_rate
        self.rng = rng or random.Random()
        self.generation = 0
        self.individuals: List[Tour] = []
        for _ in range(population_size):
            tour = Tour.random(cities, self.rng)
            if self._should_mutate():
                tour.mutate()
            self.individuals.append(tour)

    def __len__(self) -> int:
        return len(self.individuals)

    def __iter__(self):
        return iter(self.individuals)

    def total_fitness(self) -> float:
        return math.fsum(t.fitness() for t in self.individuals)

    def select_index(self, fitnesses: Sequence[float], fitness_sum: float) -> int:
        """
        Roulette-wheel draw over ``fitnesses``.

        ``fitness_sum`` must equal the sum of ``fitnesses``; a walk that never
        passes the drawn value means the two disagree and raises
        ``SelectionError``.
        """
        r = self.rng.random() * fitness_sum
        partial = 0.0
        for i, fit in enumerate(fitnesses):
            partial += fit
            if r < partial:
                return i
        raise SelectionError(
            f"Roulette walk exhausted {len(fitnesses)} candidates: "
            f"draw={r!r}, cached total={fitness_sum!r}, live total={math.fsum(fitnesses)!r}"
        )

    def select_parents(self) -> List[Tuple[Tour, Tour]]:
        """
        Pair the current individuals as parents, sampling without
        replacement. With an odd population the last unselected tour is
        left out; the next generation is one smaller. ``individuals`` itself
        is not touched.
        """
        pool = SelectionPool(self.individuals)
        pairs: List[Tuple[Tour, Tour]] = []
        while len(pool) >= 2:
            first = pool.take(self.select_index(pool.fitnesses, pool.total))
            second = pool.take(self.select_index(pool.fitnesses, pool.total))
            pairs.append((first, second))
        return pairs

    def advance_generation(self) -> None:
        """
        Replace the population with the children of one selection round.

        The step is all-or-nothing: if it is interrupted (KeyboardInterrupt
        included), the previous individuals, their orders and the random
        state are put back before the exception propagates.
        """
        previous = self.individuals
        orders = [list(t.order) for t in previous]
        rng_state = self.rng.getstate()
        try:
            pairs = self.select_parents()
            for first, second in pairs:
                if self._should_mutate():
                    first.mutate()
                if self._should_mutate():
                    second.mutate()
            children: List[Tour] = []
            for first, second in pairs:
                children.extend(first.recombine(second))
        except BaseException:
            for tour, order in zip(previous, orders):
                tour.order = order
            self.individuals = previous
            self.rng.setstate(rng_state)
            raise
        self.individuals = children
        self.generation += 1

    def best(self) -> Tour:
        """Shortest tour of the current generation; the first one wins ties."""
        if not self.individuals:
            raise ValueError("best() called on an empty population.")
        best = self.individuals[0]
        best_len = best.length()
        for tour in self.individuals[1:]:
            length = tour.length()
            if length < best_len:
                best = tour
                best_len = length
        return best

    def to_state(self) -> Dict:
        return {
            "mutation_rate": self.mutation_rate,
            "generation": self.generation,
            "individuals": [list(t.order) for t in self.individuals],
            "rng": rng_state_to_json(self.rng),
        }

    @classmethod
    def from_state(cls, state: Dict, cities: Cities) -> "Population":
        rng = random.Random()
        if state.get("rng") is not None:
            rng.setstate(rng_state_from_json(state["rng"]))
        population = cls(cities, 0, state["mutation_rate"], rng=rng)
        population.generation = state.get("generation", 0)
        population.individuals = [Tour(cities, order, rng=rng) for order in state["individuals"]]
        return population

    def _should_mutate(self) -> bool:
        return self.rng.random() < self.mutation_rate


def _swap_remove(items: List, idx: int):
    items[idx], items[-1] = items[-1], items[idx]
    return items.pop()


def rng_state_to_json(rng: random.Random) -> List:
    version, internal, gauss_next = rng.getstate()
    return [version, list(internal), gauss_next]


def rng_state_from_json(state: Sequence) -> Tuple:
    version, internal, gauss_next = state
    return version, tuple(internal), gauss_next
