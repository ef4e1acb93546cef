from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence

import torch

from .cities import Cities
from .tour import Tour


@dataclass
class Fitness:
    length: float
    gap: float
    score: float


def _gap(length: float, optimum: Optional[float]) -> float:
    if optimum is None or optimum <= 0:
        return float("inf")
    return (length - optimum) / optimum


def evaluate_tour(cities: Cities, tour, optimum: Optional[float] = None) -> Fitness:
    if not isinstance(tour, Tour):
        tour = Tour(cities, tour)
    length = tour.length()
    return Fitness(length=length, gap=_gap(length, optimum), score=tour.fitness())


def distance_tensor(cities: Cities, device=None) -> torch.Tensor:
    return torch.as_tensor(cities.dist, dtype=torch.float64, device=device)


def population_lengths(
    cities: Cities, orders: Sequence[Sequence[int]], device=None, dist: torch.Tensor = None
) -> torch.Tensor:
    # orders: [P, N] city indices; result: [P] round-trip lengths
    if dist is None:
        dist = distance_tensor(cities, device=device)
    if len(orders) == 0:
        return torch.zeros(0, dtype=dist.dtype, device=dist.device)
    idx = torch.tensor([list(o) for o in orders], device=dist.device, dtype=torch.long)
    if idx.shape[1] == 0:
        return torch.zeros(idx.shape[0], dtype=dist.dtype, device=dist.device)
    a = idx
    b = idx.roll(-1, dims=1)
    return dist[a, b].sum(dim=1)


def summarize(cities: Cities, tours: Iterable[Tour], optimum: Optional[float] = None, device=None) -> Dict[str, float]:
    orders = [t.order for t in tours]
    if not orders:
        return {"best": float("inf"), "mean": float("inf"), "worst": float("inf"), "gap": float("inf")}
    lengths = population_lengths(cities, orders, device=device)
    best = lengths.min().item()
    return {
        "best": best,
        "mean": lengths.mean().item(),
        "worst": lengths.max().item(),
        "gap": _gap(best, optimum),
    }
