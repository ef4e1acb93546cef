"""
Tests for tour evaluation and batched population lengths.
"""

import math
import random
import unittest

import numpy as np
import torch

from tsp_deme.cities import Cities
from tsp_deme.evaluation import evaluate_tour, population_lengths, summarize
from tsp_deme.population import Population
from tsp_deme.tour import Tour


class TestEvaluation(unittest.TestCase):

    def setUp(self):
        self.cities = Cities.from_coordinates(np.random.default_rng(3).uniform(0, 50, size=(11, 2)))

    def test_batch_lengths_match_cities(self):
        rng = random.Random(0)
        tours = [Tour.random(self.cities, rng) for _ in range(16)]
        lengths = population_lengths(self.cities, [t.order for t in tours])
        self.assertEqual(lengths.shape, (16,))
        for tour, length in zip(tours, lengths.tolist()):
            self.assertAlmostEqual(length, tour.length(), places=9)

    def test_batch_lengths_empty(self):
        self.assertEqual(population_lengths(self.cities, []).numel(), 0)

    def test_batch_lengths_with_given_tensor(self):
        dist = torch.as_tensor(self.cities.dist)
        order = list(range(11))
        value = population_lengths(self.cities, [order], dist=dist)[0].item()
        self.assertAlmostEqual(value, self.cities.tour_length(order), places=9)

    def test_evaluate_tour_gap(self):
        square = Cities.from_coordinates([(0, 0), (1, 0), (1, 1), (0, 1)])
        fit = evaluate_tour(square, [0, 2, 1, 3], optimum=4.0)
        self.assertAlmostEqual(fit.length, 2 + 2 * math.sqrt(2))
        self.assertAlmostEqual(fit.gap, (fit.length - 4.0) / 4.0)
        self.assertGreater(fit.score, 0.0)
        self.assertEqual(evaluate_tour(square, Tour(square, [0, 1, 2, 3])).gap, float("inf"))

    def test_summarize_population(self):
        pop = Population(self.cities, 10, 0.0, rng=random.Random(1))
        stats = summarize(self.cities, pop)
        lengths = [t.length() for t in pop]
        self.assertAlmostEqual(stats["best"], min(lengths), places=9)
        self.assertAlmostEqual(stats["worst"], max(lengths), places=9)
        self.assertAlmostEqual(stats["mean"], sum(lengths) / len(lengths), places=9)
        self.assertAlmostEqual(stats["best"], pop.best().length(), places=9)

    def test_summarize_empty(self):
        self.assertEqual(summarize(self.cities, [])["best"], float("inf"))


if __name__ == "__main__":
    unittest.main()
