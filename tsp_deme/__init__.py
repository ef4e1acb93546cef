"""
Genetic-algorithm TSP solver: permutation tours evolved by roulette-wheel
selection, ordered crossover and swap mutation.
"""

from .cities import Cities
from .population import Population, SelectionError
from .tour import InvalidTourError, Tour

__all__ = [
    "Cities",
    "InvalidTourError",
    "Population",
    "SelectionError",
    "Tour",
    "cities",
    "data",
    "evaluation",
    "evolutionary",
    "population",
    "tour",
]
