import random
from pathlib import Path
from typing import List, Optional, Sequence

import networkx as nx
import numpy as np
import tsplib95


Order = List[int]


def random_permutation(n: int, rng: random.Random) -> Order:
    order = list(range(n))
    rng.shuffle(order)
    return order


class Cities:
    """
    Distance oracle for a fixed set of cities.

    Cities are addressed by index in ``[0, n)``. Tour lengths are closed round
    trips: the last city connects back to the first.
    """

    def __init__(self, dist, coordinates=None, labels: Optional[List] = None):
        dist = np.asarray(dist, dtype=np.float64)
        if dist.ndim != 2 or dist.shape[0] != dist.shape[1]:
            raise ValueError(f"Distance matrix must be square, got shape {dist.shape}.")
        if np.any(dist < 0):
            raise ValueError("Distance matrix must not contain negative entries.")
        self.dist = dist
        self.coordinates = None if coordinates is None else np.asarray(coordinates, dtype=np.float64)
        self.labels = labels if labels is not None else list(range(dist.shape[0]))

    @classmethod
    def from_coordinates(cls, coords) -> "Cities":
        coords = np.asarray(coords, dtype=np.float64)
        if coords.size == 0:
            return cls(np.zeros((0, 0)), coordinates=coords.reshape(0, 2))
        if coords.ndim != 2 or coords.shape[1] != 2:
            raise ValueError(f"Coordinates must have shape (n, 2), got {coords.shape}.")
        diff = coords[:, None, :] - coords[None, :, :]
        dist = np.sqrt((diff ** 2).sum(axis=-1))
        return cls(dist, coordinates=coords)

    @classmethod
    def from_graph(cls, graph: nx.Graph) -> "Cities":
        nodes = list(graph.nodes())
        idx_map = {n: i for i, n in enumerate(nodes)}
        dist = np.zeros((len(nodes), len(nodes)))
        directed = graph.is_directed()
        for u, v, w in graph.edges(data="weight", default=1.0):
            dist[idx_map[u], idx_map[v]] = w
            if not directed:
                dist[idx_map[v], idx_map[u]] = w
        coords = None
        if nodes and all("coord" in graph.nodes[n] and graph.nodes[n]["coord"] for n in nodes):
            coords = [graph.nodes[n]["coord"][:2] for n in nodes]
        return cls(dist, coordinates=coords, labels=nodes)

    @classmethod
    def load(cls, path) -> "Cities":
        path = Path(path)
        if path.suffix == ".tsp":
            problem = tsplib95.load(path)
            return cls.from_graph(problem.get_graph())
        coords = []
        with path.open("r") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.split("#", 1)[0].strip()
                if not line:
                    continue
                parts = line.split()
                if len(parts) != 2:
                    raise ValueError(f"{path}:{lineno}: expected 'x y', got {line!r}")
                coords.append((float(parts[0]), float(parts[1])))
        return cls.from_coordinates(np.array(coords, dtype=np.float64).reshape(-1, 2))

    def city_count(self) -> int:
        return int(self.dist.shape[0])

    def __len__(self) -> int:
        return self.city_count()

    def tour_length(self, order: Sequence[int]) -> float:
        if len(order) == 0:
            return 0.0
        idx = np.asarray(order, dtype=np.intp)
        return float(self.dist[idx, np.roll(idx, -1)].sum())

    def reorder(self, order: Sequence[int]) -> np.ndarray:
        if self.coordinates is None:
            raise ValueError("Cities were built without coordinates.")
        return self.coordinates[np.asarray(order, dtype=np.intp)]
