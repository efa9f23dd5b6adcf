import numpy as np
from typing import Optional, Union

from ..base import Problem
from ..numpy.compiler import EntryPoint
from ..numpy.solve import Solution, time_grid
from .compiler import entry_point
from .steppers import JitStepper, resolve_stepper


def solve(
    problem: Problem,
    dt: Optional[float] = None,
    *,
    stepper: Union[str, JitStepper, None] = "rk4",
    nsteps: Optional[int] = None,
    saveat: int = 1,
) -> Solution:
    """Integrate ``problem`` with a numba-compiled fixed-step method.

    Same grid and saving rules as :func:`specode.numpy.solve`. Under
    ``FULL`` the callback must be numba-compilable.
    """
    if not isinstance(problem, Problem):
        raise TypeError("problem must be a Problem.")
    if not isinstance(saveat, (int, np.integer)) or isinstance(saveat, bool):
        raise TypeError("saveat must be an integer.")
    if saveat < 1:
        raise ValueError("saveat must be at least 1.")

    ts = time_grid(problem.tspan, dt=dt, nsteps=nsteps)
    step = resolve_stepper(stepper)
    entry = entry_point(problem, step)
    t_out, u_out = entry.run(problem, ts, int(saveat), step)
    return Solution(t_out, u_out, problem, entry)


def warmup(
    problem: Problem, stepper: Union[str, JitStepper, None] = "rk4"
) -> EntryPoint:
    """Build the entry point for ``problem`` and run one step to trigger JIT."""
    step = resolve_stepper(stepper)
    entry = entry_point(problem, step)
    ts = time_grid(problem.tspan, nsteps=1)
    entry.run(problem, ts, 1, step)
    return entry


__all__ = [
    "solve",
    "warmup",
]
