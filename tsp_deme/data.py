from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import tsplib95

from .cities import Cities


@dataclass
class Instance:
    name: str
    path: Path
    cities: Cities
    optimum: Optional[float]


def _optimum_from_tour_file(problem, path: Path) -> Optional[float]:
    # square4.tsp -> square4.opt.tour, beside it or under solutions/
    for candidate in (path.with_suffix(".opt.tour"), path.parent / "solutions" / f"{path.stem}.opt.tour"):
        if not candidate.exists():
            continue
        solution = tsplib95.load(candidate)
        if solution.tours:
            return float(problem.trace_tours(solution.tours)[0])
    return None


def load_instance(path) -> Instance:
    path = Path(path)
    problem = tsplib95.load(path)
    cities = Cities.from_graph(problem.get_graph())
    optimum = _optimum_from_tour_file(problem, path)
    return Instance(name=problem.name or path.stem, path=path, cities=cities, optimum=optimum)
