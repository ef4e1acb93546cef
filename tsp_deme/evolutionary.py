import json
import math
import random
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .cities import Cities
from .population import Population
from .tour import Tour


@dataclass
class EvolutionConfig:
    population_size: int = 100
    generations: int = 1000
    mutation_rate: float = 0.05
    random_seed: int = 123
    report_interval: int = 0

    def __post_init__(self):
        if self.population_size < 2:
            raise ValueError(f"population_size must be at least 2, got {self.population_size}.")
        if self.generations < 0:
            raise ValueError(f"generations must be non-negative, got {self.generations}.")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise ValueError(f"mutation_rate must be within [0, 1], got {self.mutation_rate}.")
        if self.report_interval < 0:
            raise ValueError(f"report_interval must be non-negative, got {self.report_interval}.")

    @classmethod
    def from_file(cls, path, **overrides) -> "EvolutionConfig":
        data = json.loads(Path(path).read_text())
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a JSON object.")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"{path}: unknown config keys {unknown}.")
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**data)


@dataclass
class SearchResult:
    order: List[int]
    length: float
    generation: int
    generations_run: int
    optimum: Optional[float] = None

    @property
    def gap(self) -> float:
        if self.optimum is None or math.isclose(self.optimum, 0.0):
            return float("inf")
        return (self.length - self.optimum) / self.optimum


class EvolutionarySearch:
    """Runs a Population for a fixed number of generations and keeps the best tour seen."""

    def __init__(
        self,
        config: EvolutionConfig,
        cities: Cities,
        optimum: Optional[float] = None,
        rng: random.Random = None,
        population: Population = None,
    ):
        self.cfg = config
        self.cities = cities
        self.optimum = optimum
        if population is None:
            rng = rng or random.Random(config.random_seed)
            population = Population(cities, config.population_size, config.mutation_rate, rng=rng)
        self.population = population
        self.best_tour: Optional[Tour] = None
        self.best_length = float("inf")
        self.best_generation = 0
        if len(self.population):
            self._observe()

    @property
    def generation(self) -> int:
        return self.population.generation

    def _observe(self) -> bool:
        candidate = self.population.best()
        length = candidate.length()
        if length < self.best_length:
            # Copy: population members keep mutating after this point.
            self.best_tour = candidate.copy()
            self.best_length = length
            self.best_generation = self.generation
            return True
        return False

    def step(self) -> bool:
        """Advance one generation; return True when the best-so-far improved."""
        self.population.advance_generation()
        if not len(self.population):
            return False
        return self._observe()

    def run(
        self,
        on_improvement: Callable[[int, Tour], None] = None,
        on_report: Callable[["EvolutionarySearch"], None] = None,
    ) -> SearchResult:
        if on_improvement and self.best_tour is not None:
            on_improvement(self.best_generation, self.best_tour)
        remaining = self.cfg.generations - self.generation
        for _ in range(max(0, remaining)):
            if len(self.population) < 2:
                break
            if self.step() and on_improvement:
                on_improvement(self.generation, self.best_tour)
            if on_report and self.cfg.report_interval and self.generation % self.cfg.report_interval == 0:
                on_report(self)
        return self.result()

    def result(self) -> SearchResult:
        if self.best_tour is None:
            raise ValueError("No tour has been evaluated yet.")
        return SearchResult(
            order=list(self.best_tour.order),
            length=self.best_length,
            generation=self.best_generation,
            generations_run=self.generation,
            optimum=self.optimum,
        )

    def to_state(self) -> Dict:
        return {
            "cfg": asdict(self.cfg),
            "optimum": self.optimum,
            "best": None if self.best_tour is None else {
                "order": list(self.best_tour.order),
                "length": self.best_length,
                "generation": self.best_generation,
            },
            "population": self.population.to_state(),
        }

    @classmethod
    def from_state(cls, state: Dict, cities: Cities) -> "EvolutionarySearch":
        cfg = EvolutionConfig(**state["cfg"])
        population = Population.from_state(state["population"], cities)
        search = cls(cfg, cities, optimum=state.get("optimum"), population=population)
        best = state.get("best")
        if best is not None:
            tour = Tour(cities, best["order"], rng=population.rng)
            length = tour.length()
            if length <= search.best_length:
                search.best_tour = tour
                search.best_length = length
                search.best_generation = best.get("generation", 0)
        return search
