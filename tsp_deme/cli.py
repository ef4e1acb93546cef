import argparse
import json
import time
from dataclasses import replace
from pathlib import Path

import numpy as np

from tsp_deme.cities import Cities
from tsp_deme.data import load_instance
from tsp_deme.evaluation import summarize
from tsp_deme.evolutionary import EvolutionConfig, EvolutionarySearch


def log(msg: str) -> None:
    ts = time.strftime("%H:%M:%S")
    print(f"[{ts}] {msg}", flush=True)


def save_checkpoint(search: EvolutionarySearch, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(search.to_state()))


def load_checkpoint(cities: Cities, path: Path) -> EvolutionarySearch:
    state = json.loads(path.read_text())
    return EvolutionarySearch.from_state(state, cities)


def load_cities(path: Path):
    if not path.exists():
        raise FileNotFoundError(f"No cities file at {path}.")
    if path.suffix == ".tsp":
        inst = load_instance(path)
        return inst.cities, inst.optimum
    return Cities.load(path), None


def build_config(args) -> EvolutionConfig:
    overrides = {
        "population_size": args.population_size,
        "generations": args.generations,
        "mutation_rate": args.mutation_rate,
        "random_seed": args.seed,
        "report_interval": args.report_interval,
    }
    if args.config:
        return EvolutionConfig.from_file(args.config, **overrides)
    return EvolutionConfig(**{k: v for k, v in overrides.items() if v is not None})


def write_tour(cities: Cities, order, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if cities.coordinates is None:
        rows = np.array([cities.labels[i] for i in order]).reshape(-1, 1)
        np.savetxt(path, rows, fmt="%s", delimiter="\t")
    else:
        np.savetxt(path, cities.reorder(order), fmt="%g", delimiter="\t")


def _print_summary(search: EvolutionarySearch) -> None:
    stats = summarize(search.cities, search.population, optimum=search.optimum)
    log(
        f"gen {search.generation}: best={stats['best']:.4f} mean={stats['mean']:.4f} "
        f"worst={stats['worst']:.4f} size={len(search.population)}"
    )


def run(args) -> None:
    t0 = time.perf_counter()
    cities_path = Path(args.cities)
    log(f"loading cities from {cities_path}")
    cities, optimum = load_cities(cities_path)
    if cities.city_count() == 0:
        raise RuntimeError(f"{cities_path} contains no cities.")
    log(f"loaded {cities.city_count()} cities in {time.perf_counter() - t0:.2f}s")

    checkpoint = Path(args.checkpoint) if args.checkpoint else None
    if args.resume and checkpoint and checkpoint.exists():
        log(f"resuming from {checkpoint}")
        search = load_checkpoint(cities, checkpoint)
        if args.generations is not None:
            search.cfg = replace(search.cfg, generations=args.generations)
            log(f"generations set to {args.generations}")
        ignored = [
            flag
            for flag, value in (
                ("--config", args.config),
                ("--population-size", args.population_size),
                ("--mutation-rate", args.mutation_rate),
                ("--seed", args.seed),
            )
            if value is not None
        ]
        if ignored:
            log(f"ignoring {', '.join(ignored)}: the checkpoint's settings are kept")
    else:
        cfg = build_config(args)
        log(
            f"starting new search: population={cfg.population_size} generations={cfg.generations} "
            f"mutation_rate={cfg.mutation_rate} seed={cfg.random_seed}"
        )
        search = EvolutionarySearch(cfg, cities, optimum=optimum)

    def on_improvement(generation, tour):
        print(f"{generation}\t{tour.length():.6f}", flush=True)

    try:
        result = search.run(on_improvement=on_improvement, on_report=_print_summary)
    except KeyboardInterrupt:
        if checkpoint:
            save_checkpoint(search, checkpoint)
            print(f"Interrupted. Checkpoint saved to {checkpoint}.")
        else:
            print("Interrupted.")
        return
    if checkpoint:
        save_checkpoint(search, checkpoint)
        log(f"checkpoint saved to {checkpoint}")
    gap = "" if result.optimum is None else f" gap={result.gap:.2%}"
    log(
        f"done in {time.perf_counter() - t0:.2f}s: best length={result.length:.6f} "
        f"found at generation {result.generation}/{result.generations_run}{gap}"
    )
    if args.output:
        write_tour(cities, result.order, Path(args.output))
        log(f"best tour written to {args.output}")


def inspect(args) -> None:
    checkpoint = Path(args.checkpoint)
    if not checkpoint.exists():
        print(f"No checkpoint found at {checkpoint}.")
        return
    cities, _ = load_cities(Path(args.cities))
    search = load_checkpoint(cities, checkpoint)
    stats = summarize(cities, search.population, optimum=search.optimum)
    print(
        f"generation={search.generation}, best_length={search.best_length:.6f} "
        f"(generation {search.best_generation}), population={len(search.population)}"
    )
    print(f"current: best={stats['best']:.6f} mean={stats['mean']:.6f} worst={stats['worst']:.6f}")
    if search.best_tour is not None:
        print("order: " + " ".join(str(c) for c in search.best_tour.order))


def main(argv=None):
    parser = argparse.ArgumentParser(description="Genetic-algorithm TSP solver")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Evolve tours for a set of cities")
    run_parser.add_argument("cities", help="TSPLIB .tsp file or text file of 'x y' lines")
    run_parser.add_argument("--config", help="JSON file with EvolutionConfig fields")
    run_parser.add_argument("--population-size", type=int)
    run_parser.add_argument("--generations", type=int)
    run_parser.add_argument("--mutation-rate", type=float)
    run_parser.add_argument("--seed", type=int)
    run_parser.add_argument("--report-interval", type=int)
    run_parser.add_argument("--output", help="Write the best tour as TSV")
    run_parser.add_argument("--checkpoint", help="JSON checkpoint path")
    run_parser.add_argument("--resume", action="store_true", help="Resume from --checkpoint if present")
    run_parser.set_defaults(func=run)

    inspect_parser = subparsers.add_parser("inspect", help="Inspect a saved checkpoint")
    inspect_parser.add_argument("cities")
    inspect_parser.add_argument("checkpoint")
    inspect_parser.set_defaults(func=inspect)

    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
