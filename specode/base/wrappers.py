from typing import Callable

import numpy as np


class WrappedCallback:
    """Type-erased callback with the uniform convention ``g(du, u, p, t)``.

    Every wrapped callback has the same Python type, so an entry point that
    receives one at call time never needs to be rebuilt for a new callback.
    """

    __slots__ = ("f", "inplace")

    def __init__(self, f: Callable, inplace: bool):
        self.f = f
        self.inplace = inplace

    def __call__(self, du: np.ndarray, u: np.ndarray, p, t: float) -> None:
        if self.inplace:
            self.f(du, u, p, t)
        else:
            du[...] = self.f(u, p, t)

    def __repr__(self) -> str:
        conv = "inplace" if self.inplace else "out-of-place"
        return f"WrappedCallback({self.f!r}, {conv})"


def wrap_callback(f: Callable, inplace: bool) -> WrappedCallback:
    if isinstance(f, WrappedCallback):
        return f
    return WrappedCallback(f, inplace)


__all__ = [
    "WrappedCallback",
    "wrap_callback",
]
