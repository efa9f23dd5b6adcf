import inspect
from dataclasses import dataclass
from typing import Any, Callable, Optional

import numpy as np


_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


@dataclass(frozen=True)
class CallbackShape:
    """Concrete signature of a user callback as seen by the compiler.

    Two callables are always distinct shapes, even when they accept the
    same argument types: a JIT compiles each function object separately.
    """

    callback: Callable
    inplace: bool
    dtype: np.dtype
    ndim: int
    param_type: type

    def signature(self) -> str:
        """Short human-readable description, used in log messages."""
        name = getattr(self.callback, "__qualname__", type(self.callback).__name__)
        conv = "du,u,p,t" if self.inplace else "u,p,t"
        return (
            f"{name}({conv}) u:{self.dtype}[{self.ndim}d] "
            f"p:{self.param_type.__name__}"
        )


def is_inplace(f: Callable) -> bool:
    """Infer the calling convention of ``f`` from its positional arity.

    ``f(du, u, p, t)`` is in-place, ``f(u, p, t)`` is out-of-place. Only
    positional parameters without defaults are counted.
    """
    target = getattr(f, "py_func", f)  # numba dispatchers
    try:
        sig = inspect.signature(target)
    except (TypeError, ValueError) as exc:
        raise TypeError(
            "Cannot infer the calling convention of f; pass inplace explicitly."
        ) from exc

    params = list(sig.parameters.values())
    if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params):
        raise TypeError(
            "f accepts *args, so its calling convention is ambiguous; "
            "pass inplace explicitly."
        )
    # Optional positional parameters are never filled by the solver.
    n_required = sum(
        1
        for p in params
        if p.kind in _POSITIONAL and p.default is inspect.Parameter.empty
    )
    if n_required == 4:
        return True
    if n_required == 3:
        return False
    raise TypeError(
        f"f must take (u, p, t) or (du, u, p, t), got {n_required} required "
        "positional parameters; pass inplace explicitly."
    )


def callback_shape(
    f: Callable,
    u0: np.ndarray,
    p: Any = None,
    inplace: Optional[bool] = None,
) -> CallbackShape:
    if not callable(f):
        raise TypeError("f must be callable.")
    if inplace is None:
        inplace = is_inplace(f)
    u0 = np.asarray(u0)
    return CallbackShape(
        callback=f,
        inplace=bool(inplace),
        dtype=u0.dtype,
        ndim=u0.ndim,
        param_type=type(p),
    )


__all__ = [
    "CallbackShape",
    "callback_shape",
    "is_inplace",
]
