"""Build solver entry points for the Numba backend.

* Generic: the NumPy generic loop; no jitted code depends on the problem.
* Hybrid: jitted stage kernels shared by every callback with the same
  calling convention and element kind; the callback stays a Python call.
* Specialized: the callback is jitted and inlined into a jitted step and
  a jitted time loop. Each distinct callback shape gets its own loop.
"""

import logging
from typing import Callable, Union

import numpy as np
from numba import njit, typeof
from numba.extending import is_jitted

from .. import config
from ..base import (
    CompilationCache,
    Generic,
    Hybrid,
    Problem,
    Specialized,
    wrap_callback,
)
from ..numpy.compiler import EntryPoint, integrate_fixed, run_generic, saved_count
from .steppers import JitStepper, resolve_stepper

logger = logging.getLogger(__name__)

_CACHE = CompilationCache("numba")


def jit_callback(f: Callable) -> Callable:
    """Return ``f`` compiled with numba, or ``f`` itself if already jitted."""
    if is_jitted(f):
        return f
    return njit(cache=config.NUMBA_CACHE_CALLBACKS, **config.numba_options())(f)


def _make_loop(step: Callable) -> Callable:
    @njit(**config.numba_options())
    def loop(u0, p, ts, save_every, t_out, u_out):
        u = u0.copy()
        nt = ts.shape[0]
        j = 1
        for i in range(nt - 1):
            # Stepping may promote to float64; u keeps the state dtype.
            u[:] = step(u, p, ts[i], ts[i + 1] - ts[i])
            if (i + 1) % save_every == 0 or i + 1 == nt - 1:
                t_out[j] = ts[i + 1]
                u_out[j] = u
                j += 1

    return loop


def _build_generic() -> EntryPoint:
    def run(problem, ts, save_every, stepper):
        return run_generic(problem, ts, save_every, stepper.generic)

    return EntryPoint("generic", Generic().key, run)


def _build_hybrid(strategy: Hybrid, stepper: JitStepper) -> EntryPoint:
    step = stepper.late_wrapped()
    allocate = stepper.allocate

    def run(problem, ts, save_every, stepper):
        rhs = wrap_callback(problem.f, problem.inplace)
        p = problem.p
        u0 = np.array(problem.u0)
        work = allocate(u0)

        def advance(u, t, dt):
            return step(rhs, u, p, t, dt, work)

        return integrate_fixed(advance, u0, ts, save_every)

    return EntryPoint("hybrid", strategy.key + (stepper,), run)


def _loop_args(problem: Problem, ts: np.ndarray, save_every: int):
    u0 = np.array(problem.u0)
    n_saved = saved_count(ts.size, save_every)
    t_out = np.empty(n_saved, dtype=np.float64)
    u_out = np.empty((n_saved,) + u0.shape, dtype=u0.dtype)
    t_out[0] = ts[0]
    u_out[0] = u0
    ts = np.ascontiguousarray(ts, dtype=np.float64)
    return u0, problem.p, ts, save_every, t_out, u_out


def _build_specialized(
    strategy: Specialized, stepper: JitStepper, problem: Problem
) -> EntryPoint:
    shape = strategy.shape
    f = jit_callback(shape.callback)
    loop = _make_loop(stepper.specialize(f, shape.inplace))

    # numba compiles lazily; compile now for this problem's argument types
    # so typing errors surface here, inside the cache build.
    args = _loop_args(problem, np.array(problem.tspan, dtype=np.float64), 1)
    loop.compile(tuple(typeof(a) for a in args))

    def run(problem, ts, save_every, stepper):
        args = _loop_args(problem, ts, save_every)
        loop(*args)
        return args[-2], args[-1]

    return EntryPoint("specialized", strategy.key + (stepper,), run)


def entry_point(
    problem: Problem, stepper: Union[str, JitStepper, None] = "rk4"
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
        logger.debug("jitting %s", strategy.shape.signature())
        return _CACHE.get_or_compile(
            strategy.key + (step,), lambda: _build_specialized(strategy, step, problem)
        )
    raise TypeError(f"Unsupported dispatch strategy {strategy!r}.")


def compilation_cache() -> CompilationCache:
    return _CACHE


__all__ = [
    "entry_point",
    "jit_callback",
    "compilation_cache",
]
