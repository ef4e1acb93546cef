import operator
import random
from typing import List, Optional, Sequence, Tuple

from .cities import Cities, Order, random_permutation


FITNESS_EPSILON = 1e-9


class InvalidTourError(RuntimeError):
    """Raised when a tour stops being a permutation of its cities."""


class Tour:
    """
    A candidate solution: a visiting order over every city exactly once.

    Fitness is derived from ``order`` on every call and never stored, so a
    mutated tour can not report a stale value.
    """

    def __init__(self, cities: Cities, order: Optional[Sequence[int]] = None, rng: random.Random = None):
        self.cities = cities
        self.rng = rng or random.Random()
        if order is None:
            order = random_permutation(cities.city_count(), self.rng)
        self.order: Order = [operator.index(city) for city in order]
        self._check_valid()

    @staticmethod
    def random(cities: Cities, rng: random.Random) -> "Tour":
        return Tour(cities, rng=rng)

    def __len__(self) -> int:
        return len(self.order)

    def __repr__(self) -> str:
        return f"Tour(order={self.order}, length={self.length():.4f})"

    def copy(self) -> "Tour":
        return Tour(self.cities, self.order, rng=self.rng)

    def mutate(self) -> None:
        if len(self.order) < 2:
            return
        i, j = self._two_positions()
        self.order[i], self.order[j] = self.order[j], self.order[i]
        self._check_valid()

    def recombine(self, other: "Tour") -> Tuple["Tour", "Tour"]:
        """
        Ordered crossover (OX) with ``other``.

        A window ``[b, e)`` is drawn once and shared by both children. The
        first child keeps this tour's cities inside the window and takes the
        rest in the order they appear in ``other``; the second child is the
        mirror image. Neither parent is modified.
        """
        self._check_valid()
        other._check_valid()
        if len(self.order) != len(other.order):
            raise ValueError("Cannot recombine tours over different city sets.")
        if len(self.order) < 2:
            return self.copy(), other.copy()
        b, e = sorted(self._two_positions())
        first = self.crossover_child(self, other, b, e)
        second = self.crossover_child(other, self, b, e)
        return first, second

    @staticmethod
    def crossover_child(p1: "Tour", p2: "Tour", b: int, e: int) -> "Tour":
        window = p1.order[b:e]
        placed = set(window)
        fill = (city for city in p2.order if city not in placed)
        order: List[int] = []
        for i in range(len(p1.order)):
            if b <= i < e:
                order.append(p1.order[i])
            else:
                order.append(next(fill))
        # Tour() re-checks the permutation invariant.
        return Tour(p1.cities, order, rng=p1.rng)

    def length(self) -> float:
        return self.cities.tour_length(self.order)

    def fitness(self) -> float:
        return 1.0 / (self.length() + FITNESS_EPSILON)

    def is_valid(self) -> bool:
        n = self.cities.city_count()
        if len(self.order) != n:
            return False
        seen = [False] * n
        for city in self.order:
            if not isinstance(city, int) or city < 0 or city >= n or seen[city]:
                return False
            seen[city] = True
        return True

    def _check_valid(self) -> None:
        if not self.is_valid():
            raise InvalidTourError(
                f"Tour is not a permutation of {self.cities.city_count()} cities: {self.order}"
            )

    def _two_positions(self) -> Tuple[int, int]:
        n = len(self.order)
        a = self.rng.randrange(n)
        b = self.rng.randrange(n)
        while a == b:
            b = self.rng.randrange(n)
        return a, b
