"""Numba versions of the fixed-step integrators.

A :class:`JitStepper` knows how to

* ``specialize(f, inplace)``: build a jitted ``step(u, p, t, dt)`` that
  calls ``f`` directly, so numba can inline it;
* ``late_wrapped()``: build a Python ``step(rhs, u, p, t, dt, work)`` whose
  stage arithmetic runs in jitted kernels while ``rhs`` stays a Python
  call;
* ``generic``: the pure NumPy stepper used when nothing is compiled.
"""

from typing import Callable, Dict, Union

import numpy as np
from numba import njit

from .. import config
from ..numpy.steppers import FixedStepper
from ..numpy.steppers import resolve_stepper as resolve_numpy_stepper


def _kernels():
    opts = config.numba_options()

    @njit(**opts)
    def axpy(out, u, a, k):
        for i in range(u.shape[0]):
            out[i] = u[i] + a * k[i]

    @njit(**opts)
    def rk4_combine(out, u, dt, k1, k2, k3, k4):
        c = dt / 6.0
        for i in range(u.shape[0]):
            out[i] = u[i] + c * (k1[i] + 2.0 * k2[i] + 2.0 * k3[i] + k4[i])

    return axpy, rk4_combine


class JitStepper:
    name = "abstract"
    stages = 0

    @property
    def generic(self) -> FixedStepper:
        return resolve_numpy_stepper(self.name)

    def allocate(self, u: np.ndarray):
        return [np.empty_like(u) for _ in range(self.stages + 1)]

    def specialize(self, f: Callable, inplace: bool) -> Callable:
        raise NotImplementedError

    def late_wrapped(self) -> Callable:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<jit stepper {self.name}>"


class Euler(JitStepper):
    name = "euler"
    stages = 1

    def specialize(self, f, inplace):
        opts = config.numba_options()
        if inplace:

            @njit(**opts)
            def step(u, p, t, dt):
                k1 = np.empty_like(u)
                f(k1, u, p, t)
                return u + dt * k1

        else:

            @njit(**opts)
            def step(u, p, t, dt):
                return u + dt * f(u, p, t)

        return step

    def late_wrapped(self):
        axpy, _ = _kernels()

        def step(rhs, u, p, t, dt, work):
            k1 = work[0]
            rhs(k1, u, p, t)
            out = np.empty_like(u)
            axpy(out.reshape(-1), u.reshape(-1), dt, k1.reshape(-1))
            return out

        return step


class Midpoint(JitStepper):
    name = "midpoint"
    stages = 2

    def specialize(self, f, inplace):
        opts = config.numba_options()
        if inplace:

            @njit(**opts)
            def step(u, p, t, dt):
                k1 = np.empty_like(u)
                k2 = np.empty_like(u)
                f(k1, u, p, t)
                f(k2, u + 0.5 * dt * k1, p, t + 0.5 * dt)
                return u + dt * k2

        else:

            @njit(**opts)
            def step(u, p, t, dt):
                k1 = f(u, p, t)
                return u + dt * f(u + 0.5 * dt * k1, p, t + 0.5 * dt)

        return step

    def late_wrapped(self):
        axpy, _ = _kernels()

        def step(rhs, u, p, t, dt, work):
            k1, k2, tmp = work
            half = 0.5 * dt
            rhs(k1, u, p, t)
            axpy(tmp.reshape(-1), u.reshape(-1), half, k1.reshape(-1))
            rhs(k2, tmp, p, t + half)
            out = np.empty_like(u)
            axpy(out.reshape(-1), u.reshape(-1), dt, k2.reshape(-1))
            return out

        return step


class RK4(JitStepper):
    name = "rk4"
    stages = 4

    def specialize(self, f, inplace):
        opts = config.numba_options()
        if inplace:

            @njit(**opts)
            def step(u, p, t, dt):
                half = 0.5 * dt
                k1 = np.empty_like(u)
                k2 = np.empty_like(u)
                k3 = np.empty_like(u)
                k4 = np.empty_like(u)
                f(k1, u, p, t)
                f(k2, u + half * k1, p, t + half)
                f(k3, u + half * k2, p, t + half)
                f(k4, u + dt * k3, p, t + dt)
                return u + (dt / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)

        else:

            @njit(**opts)
            def step(u, p, t, dt):
                half = 0.5 * dt
                k1 = f(u, p, t)
                k2 = f(u + half * k1, p, t + half)
                k3 = f(u + half * k2, p, t + half)
                k4 = f(u + dt * k3, p, t + dt)
                return u + (dt / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)

        return step

    def late_wrapped(self):
        axpy, rk4_combine = _kernels()

        def step(rhs, u, p, t, dt, work):
            k1, k2, k3, k4, tmp = work
            half = 0.5 * dt
            uf = u.reshape(-1)
            tf = tmp.reshape(-1)

            rhs(k1, u, p, t)
            axpy(tf, uf, half, k1.reshape(-1))
            rhs(k2, tmp, p, t + half)
            axpy(tf, uf, half, k2.reshape(-1))
            rhs(k3, tmp, p, t + half)
            axpy(tf, uf, dt, k3.reshape(-1))
            rhs(k4, tmp, p, t + dt)
            out = np.empty_like(u)
            rk4_combine(
                out.reshape(-1),
                uf,
                dt,
                k1.reshape(-1),
                k2.reshape(-1),
                k3.reshape(-1),
                k4.reshape(-1),
            )
            return out

        return step


_STEPPERS: Dict[str, JitStepper] = {
    "euler": Euler(),
    "midpoint": Midpoint(),
    "rk4": RK4(),
}


def resolve_stepper(stepper: Union[str, JitStepper, None]) -> JitStepper:
    if stepper is None:
        return _STEPPERS["rk4"]
    if isinstance(stepper, JitStepper):
        return stepper
    if isinstance(stepper, str):
        try:
            return _STEPPERS[stepper.lower()]
        except KeyError:
            available = ", ".join(sorted(_STEPPERS))
            raise ValueError(
                f"Unknown stepper '{stepper}'. Available: {available}."
            ) from None
    raise TypeError("stepper must be a name, a JitStepper or None.")


__all__ = [
    "JitStepper",
    "Euler",
    "Midpoint",
    "RK4",
    "resolve_stepper",
]
