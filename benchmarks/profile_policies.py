"""Compare specialization policies on Lorenz-96.

Two workloads are timed for every (backend, policy) pair:

* ``reuse``: one callback solved repeatedly, the case where ``full``
  specialization pays for its compilation;
* ``one-off``: a fresh callback per solve, as in an optimization loop that
  rebuilds its problem each iteration. Here ``full`` recompiles every time.

Compilation time is included in the measurements on purpose.
"""

from __future__ import annotations

import argparse
import time
from dataclasses import dataclass
from typing import Callable, List

import numpy as np
from numba import njit

import specode.numba
import specode.numpy
from specode import Problem


@dataclass
class BenchmarkConfig:
    dim: int = 40
    dt: float = 0.01
    t_end: float = 5.0
    solves: int = 10
    forcing: float = 8.0
    perturbation: float = 0.01


@dataclass
class BackendSpec:
    name: str
    solve: Callable
    cache: Callable
    make_rhs: Callable


def make_lorenz96_numpy(forcing: float) -> Callable:
    def lorenz96(x: np.ndarray, p, t: float) -> np.ndarray:  # noqa: ARG001
        return (np.roll(x, -1) - np.roll(x, 2)) * np.roll(x, 1) - x + forcing

    return lorenz96


def make_lorenz96_numba(forcing: float) -> Callable:
    @njit(cache=False)
    def lorenz96(x, p, t):  # noqa: ARG001
        k = x.size
        dx = np.empty_like(x)
        for i in range(k):
            dx[i] = (x[(i + 1) % k] - x[(i - 2) % k]) * x[(i - 1) % k] - x[i] + forcing
        return dx

    return lorenz96


def _initial_state(config: BenchmarkConfig) -> np.ndarray:
    x = np.full(config.dim, config.forcing, dtype=np.float64)
    x[0] += config.perturbation
    return x


def _time_workload(
    backend: BackendSpec, policy: str, workload: str, config: BenchmarkConfig
) -> float:
    backend.cache().clear()
    x0 = _initial_state(config)
    shared = backend.make_rhs(config.forcing)

    start = time.perf_counter()
    for i in range(config.solves):
        rhs = shared if workload == "reuse" else backend.make_rhs(config.forcing + 1e-3 * i)
        prob = Problem(rhs, x0, (0.0, config.t_end), None, policy=policy)
        backend.solve(prob, config.dt, saveat=50)
    return time.perf_counter() - start


def run_benchmark(config: BenchmarkConfig) -> None:
    backends: List[BackendSpec] = [
        BackendSpec(
            "numpy",
            specode.numpy.solve,
            specode.numpy.compilation_cache,
            make_lorenz96_numpy,
        ),
        BackendSpec(
            "numba",
            specode.numba.solve,
            specode.numba.compilation_cache,
            make_lorenz96_numba,
        ),
    ]

    print(
        f"Benchmark settings: dim={config.dim}, dt={config.dt}, "
        f"t_end={config.t_end}, solves={config.solves}"
    )

    for backend in backends:
        print("\n" + "=" * 20)
        print(f"Backend: {backend.name}")
        for workload in ("reuse", "one-off"):
            for policy in ("none", "auto", "full"):
                try:
                    elapsed = _time_workload(backend, policy, workload, config)
                except Exception as exc:  # noqa: BLE001
                    print(f"[{policy:>4}] {workload} failed: {exc}")
                    continue
                units = len(backend.cache())
                print(
                    f"[{policy:>4}] {workload:<7} {elapsed:8.4f} s "
                    f"({units} compiled entry point{'s' if units != 1 else ''})"
                )


def parse_args() -> BenchmarkConfig:
    default_cfg = BenchmarkConfig()
    parser = argparse.ArgumentParser(
        description="Benchmark specialization policies (none, auto, full)"
    )
    parser.add_argument("--dim", type=int, default=default_cfg.dim, help="Lorenz-96 dimension")
    parser.add_argument("--dt", type=float, default=default_cfg.dt, help="Time step")
    parser.add_argument("--t-end", type=float, default=default_cfg.t_end, help="Final time")
    parser.add_argument(
        "--solves", type=int, default=default_cfg.solves, help="Solves per workload"
    )
    parser.add_argument(
        "--forcing", type=float, default=default_cfg.forcing, help="Forcing parameter F"
    )
    args = parser.parse_args()

    return BenchmarkConfig(
        dim=args.dim,
        dt=args.dt,
        t_end=args.t_end,
        solves=args.solves,
        forcing=args.forcing,
    )


def main() -> None:
    config = parse_args()
    run_benchmark(config)


if __name__ == "__main__":
    main()
