import numpy as np
from dataclasses import dataclass
from typing import Optional, Sequence, Union

import scipy.integrate

from ..base import IntegrationError, Problem, wrap_callback
from .compiler import EntryPoint, entry_point
from .steppers import FixedStepper, resolve_stepper


@dataclass(frozen=True, eq=False)
class Solution:
    """Result of a solve: time-first samples plus what produced them.

    ``entry`` is ``None`` for adaptive solves, which call back through
    SciPy rather than a compiled entry point.
    """

    t: np.ndarray
    u: np.ndarray
    problem: Problem
    entry: Optional[EntryPoint] = None

    @property
    def strategy(self):
        return self.problem.strategy

    @property
    def final(self) -> np.ndarray:
        return self.u[-1]

    def __len__(self) -> int:
        return self.t.size


def time_grid(
    tspan: Sequence[float],
    dt: Optional[float] = None,
    nsteps: Optional[int] = None,
) -> np.ndarray:
    """Fixed-step grid from ``tspan[0]`` to ``tspan[1]``.

    Exactly one of ``dt`` and ``nsteps`` must be given. With ``dt`` the
    last step is shortened so the grid ends exactly on ``tspan[1]``.
    """
    t0, tf = float(tspan[0]), float(tspan[1])
    if (dt is None) == (nsteps is None):
        raise ValueError("Provide exactly one of dt and nsteps.")

    if nsteps is not None:
        if not isinstance(nsteps, (int, np.integer)) or isinstance(nsteps, bool):
            raise TypeError("nsteps must be an integer.")
        if nsteps < 1:
            raise ValueError("nsteps must be at least 1.")
        return np.linspace(t0, tf, int(nsteps) + 1)

    dt = abs(float(dt))
    if not np.isfinite(dt) or dt == 0.0:
        raise ValueError("dt must be finite and non-zero.")
    span = abs(tf - t0)
    n = max(1, int(np.ceil(round(span / dt, 9))))
    ts = t0 + np.sign(tf - t0) * dt * np.arange(n + 1, dtype=float)
    ts[-1] = tf
    return ts


def solve(
    problem: Problem,
    dt: Optional[float] = None,
    *,
    stepper: Union[str, FixedStepper, None] = "rk4",
    nsteps: Optional[int] = None,
    saveat: int = 1,
) -> Solution:
    """Integrate ``problem`` with a fixed-step method.

    The entry point is chosen by the problem's dispatch strategy and
    compiled at most once per strategy key. ``saveat`` keeps every
    ``saveat``-th step; the first and last states are always kept.
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


def solve_adaptive(
    problem: Problem,
    method: str = "RK45",
    *,
    rtol: float = 1e-6,
    atol: float = 1e-9,
    t_eval: Optional[np.ndarray] = None,
) -> Solution:
    """Integrate ``problem`` with an adaptive SciPy method.

    SciPy always calls back into Python, so the callback goes through the
    type-erased wrapper whatever the problem's policy.
    """
    if not isinstance(problem, Problem):
        raise TypeError("problem must be a Problem.")

    rhs = wrap_callback(problem.f, problem.inplace)
    shape = problem.u0.shape
    p = problem.p

    def fun(t, y):
        du = np.empty(shape, dtype=y.dtype)
        rhs(du, y.reshape(shape), p, t)
        return du.ravel()

    result = scipy.integrate.solve_ivp(
        fun,
        problem.tspan,
        problem.u0.ravel().copy(),
        method=method,
        t_eval=t_eval,
        rtol=rtol,
        atol=atol,
    )
    if not result.success:
        raise IntegrationError(f"{method} integration failed: {result.message}")

    u = np.ascontiguousarray(result.y.T).reshape((result.t.size,) + shape)
    return Solution(result.t, u, problem, None)


def warmup(
    problem: Problem, stepper: Union[str, FixedStepper, None] = "rk4"
) -> EntryPoint:
    """Compile the entry point for ``problem`` without integrating."""
    return entry_point(problem, stepper)


__all__ = [
    "Solution",
    "time_grid",
    "solve",
    "solve_adaptive",
    "warmup",
]
