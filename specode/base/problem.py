from typing import Any, Callable, Optional, Tuple

import numpy as np

from .policy import coerce_policy
from .shape import callback_shape
from .strategy import select


class Problem:
    """Immutable ODE problem descriptor.

    Parameters
    ----------
    f : Callable
        Right-hand side, either ``f(u, p, t) -> du`` or in-place
        ``f(du, u, p, t)``.
    u0 : array_like
        Initial state. Copied and made read-only.
    tspan : tuple of float
        ``(t0, tf)``; ``tf`` may be smaller than ``t0``.
    p : Any, optional
        Parameters passed through to ``f``.
    policy : SpecializationPolicy or str, optional
        Specialization level; defaults to ``AUTO``.
    inplace : bool, optional
        Calling convention; inferred from the arity of ``f`` when omitted.
    """

    __slots__ = ("f", "u0", "tspan", "p", "policy", "shape", "strategy")

    def __init__(
        self,
        f: Callable,
        u0,
        tspan: Tuple[float, float],
        p: Any = None,
        policy=None,
        inplace: Optional[bool] = None,
    ):
        # Resolve everything before storing so that a bad argument leaves
        # no half-built descriptor behind.
        policy = coerce_policy(policy)
        u0 = _as_state(u0)
        tspan = _as_tspan(tspan)
        shape = callback_shape(f, u0, p, inplace=inplace)
        strategy = select(policy, shape)

        _set = object.__setattr__
        _set(self, "f", f)
        _set(self, "u0", u0)
        _set(self, "tspan", tspan)
        _set(self, "p", p)
        _set(self, "policy", policy)
        _set(self, "shape", shape)
        _set(self, "strategy", strategy)

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable.")

    def __delattr__(self, name):
        raise AttributeError(f"{type(self).__name__} is immutable.")

    @property
    def inplace(self) -> bool:
        return self.shape.inplace

    def __repr__(self) -> str:
        return (
            f"Problem({self.shape.signature()}, tspan={self.tspan}, "
            f"policy={self.policy.value}, strategy={self.strategy.kind})"
        )


def remake(problem: Problem, **changes) -> Problem:
    """Return a new :class:`Problem` with some fields replaced."""
    unknown = set(changes) - {"f", "u0", "tspan", "p", "policy", "inplace"}
    if unknown:
        raise TypeError(f"remake() got unexpected fields: {sorted(unknown)}")
    fields = dict(
        f=problem.f,
        u0=problem.u0,
        tspan=problem.tspan,
        p=problem.p,
        policy=problem.policy,
    )
    if "f" not in changes:
        fields["inplace"] = problem.inplace
    fields.update(changes)
    return Problem(**fields)


def _as_state(u0) -> np.ndarray:
    u0 = np.array(u0, copy=True, order="C")
    if u0.dtype.kind in "biu":
        u0 = u0.astype(np.float64)
    if u0.dtype.kind not in "fc":
        raise TypeError(f"u0 must hold real or complex numbers, got {u0.dtype}.")
    if u0.ndim == 0:
        raise ValueError("u0 must be at least one-dimensional.")
    u0.setflags(write=False)
    return u0


def _as_tspan(tspan) -> Tuple[float, float]:
    try:
        t0, tf = tspan
        t0, tf = float(t0), float(tf)
    except (TypeError, ValueError) as exc:
        raise ValueError("tspan must be a pair of numbers (t0, tf).") from exc
    if not (np.isfinite(t0) and np.isfinite(tf)):
        raise ValueError("tspan must be finite.")
    if t0 == tf:
        raise ValueError("tspan must have t0 != tf.")
    return t0, tf


__all__ = [
    "Problem",
    "remake",
]
