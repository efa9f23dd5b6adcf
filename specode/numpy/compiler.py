"""Build solver entry points for the NumPy backend.

"Compiling" here means constructing the integration loop for a strategy:

* Generic: a single loop that takes the wrapped callback and the stepper
  as call arguments, so every problem shares it.
* Hybrid: a loop bound to one stepper for a (convention, dtype kind,
  rank) key; the callback still arrives wrapped at call time.
* Specialized: a loop bound to the exact callback in its native
  convention and to the stepper; nothing is resolved at call time.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Hashable, Tuple, Union

import numpy as np

from ..base import (
    CompilationCache,
    Generic,
    Hybrid,
    Problem,
    Specialized,
    wrap_callback,
)
from .steppers import FixedStepper, resolve_stepper

logger = logging.getLogger(__name__)

_CACHE = CompilationCache("numpy")


@dataclass(frozen=True, eq=False)
class EntryPoint:
    """A compiled solver entry point.

    ``run(problem, ts, save_every, stepper)`` integrates over the time grid
    ``ts`` and returns ``(t_saved, u_saved)``. Entry points bound to a
    stepper ignore the ``stepper`` argument.
    """

    kind: str
    key: Tuple[Hashable, ...]
    run: Callable

    def __repr__(self) -> str:
        return f"<EntryPoint {self.kind} {self.key!r}>"


def saved_count(nt: int, save_every: int) -> int:
    """Number of samples kept from an ``nt``-point grid."""
    n_saved = (nt - 1) // save_every + 1
    if (nt - 1) % save_every != 0:
        n_saved += 1
    return n_saved


def integrate_fixed(
    advance: Callable, u0: np.ndarray, ts: np.ndarray, save_every: int
) -> Tuple[np.ndarray, np.ndarray]:
    """Drive ``advance(u, t, dt) -> u_next`` over ``ts``.

    Saves the initial state, every ``save_every``-th step and the final
    state. Returns time-first arrays ``(n_saved,)`` and ``(n_saved, *shape)``.
    """
    nt = ts.size
    n_saved = saved_count(nt, save_every)

    t_out = np.empty(n_saved, dtype=float)
    u_out = np.empty((n_saved,) + u0.shape, dtype=u0.dtype)
    t_out[0] = ts[0]
    u_out[0] = u0

    u = u0
    j = 1
    for i in range(nt - 1):
        u = advance(u, ts[i], ts[i + 1] - ts[i])
        if (i + 1) % save_every == 0 or i + 1 == nt - 1:
            t_out[j] = ts[i + 1]
            u_out[j] = u
            j += 1

    return t_out, u_out


def run_generic(problem: Problem, ts, save_every, stepper: FixedStepper):
    rhs = wrap_callback(problem.f, problem.inplace)
    p = problem.p
    work = stepper.allocate(problem.u0)

    def advance(u, t, dt):
        return stepper.step(rhs, u, p, t, dt, work)

    return integrate_fixed(advance, problem.u0, ts, save_every)


def _build_generic() -> EntryPoint:
    key = Generic().key

    def run(problem, ts, save_every, stepper):
        return run_generic(problem, ts, save_every, stepper)

    return EntryPoint("generic", key, run)


def _build_hybrid(strategy: Hybrid, stepper: FixedStepper) -> EntryPoint:
    key = strategy.key + (stepper,)
    step = stepper.step
    allocate = stepper.allocate

    def run(problem, ts, save_every, stepper):
        rhs = wrap_callback(problem.f, problem.inplace)
        p = problem.p
        work = allocate(problem.u0)

        def advance(u, t, dt):
            return step(rhs, u, p, t, dt, work)

        return integrate_fixed(advance, problem.u0, ts, save_every)

    return EntryPoint("hybrid", key, run)


def _build_specialized(strategy: Specialized, stepper: FixedStepper) -> EntryPoint:
    key = strategy.key + (stepper,)
    f = strategy.shape.callback

    if strategy.shape.inplace:
        step = stepper.step
        allocate = stepper.allocate

        def run(problem, ts, save_every, stepper):
            p = problem.p
            work = allocate(problem.u0)

            def advance(u, t, dt):
                return step(f, u, p, t, dt, work)

            return integrate_fixed(advance, problem.u0, ts, save_every)

    else:
        step_oop = stepper.step_oop

        def run(problem, ts, save_every, stepper):
            p = problem.p

            def advance(u, t, dt):
                return step_oop(f, u, p, t, dt)

            return integrate_fixed(advance, problem.u0, ts, save_every)

    return EntryPoint("specialized", key, run)


def entry_point(
    problem: Problem, stepper: Union[str, FixedStepper, None] = "rk4"
) -> EntryPoint:
    """Return the cached entry point for ``problem``, compiling it if needed."""
    if not isinstance(problem, Problem):
        raise TypeError("problem must be a Problem.")
    step = resolve_stepper(stepper)
    strategy = problem.strategy

    if isinstance(strategy, Generic):
        return _CACHE.get_or_compile(strategy.key, _build_generic)
    if isinstance(strategy, Hybrid):
        return _CACHE.get_or_compile(
            strategy.key + (step,), lambda: _build_hybrid(strategy, step)
        )
    if isinstance(strategy, Specialized):
        logger.debug("specializing on %s", strategy.shape.signature())
        return _CACHE.get_or_compile(
            strategy.key + (step,), lambda: _build_specialized(strategy, step)
        )
    raise TypeError(f"Unsupported dispatch strategy {strategy!r}.")


def compilation_cache() -> CompilationCache:
    return _CACHE


__all__ = [
    "EntryPoint",
    "entry_point",
    "integrate_fixed",
    "saved_count",
    "run_generic",
    "compilation_cache",
]
