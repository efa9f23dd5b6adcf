"""Fixed-step explicit integrators.

Each stepper exposes two forms of the same update:

* ``step(rhs, u, p, t, dt, work)`` for the uniform in-place convention
  ``rhs(du, u, p, t)`` used by wrapped callbacks, with preallocated
  ``work`` buffers from ``allocate``;
* ``step_oop(f, u, p, t, dt)`` for a native out-of-place ``f(u, p, t)``.
"""

from typing import Dict, List, Union

import numpy as np


class FixedStepper:
    name = "abstract"
    stages = 0

    def allocate(self, u: np.ndarray) -> List[np.ndarray]:
        return [np.empty_like(u) for _ in range(self.stages + 1)]

    def step(self, rhs, u, p, t, dt, work):
        raise NotImplementedError

    def step_oop(self, f, u, p, t, dt):
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<stepper {self.name}>"


class Euler(FixedStepper):
    name = "euler"
    stages = 1

    def step(self, rhs, u, p, t, dt, work):
        k1 = work[0]
        rhs(k1, u, p, t)
        return u + dt * k1

    def step_oop(self, f, u, p, t, dt):
        return u + dt * f(u, p, t)


class Midpoint(FixedStepper):
    name = "midpoint"
    stages = 2

    def step(self, rhs, u, p, t, dt, work):
        k1, k2, tmp = work
        rhs(k1, u, p, t)
        np.multiply(k1, 0.5 * dt, out=tmp)
        tmp += u
        rhs(k2, tmp, p, t + 0.5 * dt)
        return u + dt * k2

    def step_oop(self, f, u, p, t, dt):
        k1 = f(u, p, t)
        return u + dt * f(u + 0.5 * dt * k1, p, t + 0.5 * dt)


class RK4(FixedStepper):
    name = "rk4"
    stages = 4

    def step(self, rhs, u, p, t, dt, work):
        k1, k2, k3, k4, tmp = work
        half = 0.5 * dt

        rhs(k1, u, p, t)
        np.multiply(k1, half, out=tmp)
        tmp += u
        rhs(k2, tmp, p, t + half)
        np.multiply(k2, half, out=tmp)
        tmp += u
        rhs(k3, tmp, p, t + half)
        np.multiply(k3, dt, out=tmp)
        tmp += u
        rhs(k4, tmp, p, t + dt)
        return u + (dt / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)

    def step_oop(self, f, u, p, t, dt):
        half = 0.5 * dt
        k1 = f(u, p, t)
        k2 = f(u + half * k1, p, t + half)
        k3 = f(u + half * k2, p, t + half)
        k4 = f(u + dt * k3, p, t + dt)
        return u + (dt / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)


_STEPPERS: Dict[str, FixedStepper] = {
    "euler": Euler(),
    "midpoint": Midpoint(),
    "rk2": Midpoint(),
    "rk4": RK4(),
}


def register_stepper(name: str, stepper: FixedStepper) -> None:
    if not isinstance(stepper, FixedStepper):
        raise TypeError("stepper must be a FixedStepper instance.")
    _STEPPERS[name.lower()] = stepper


def resolve_stepper(stepper: Union[str, FixedStepper, None]) -> FixedStepper:
    if stepper is None:
        return _STEPPERS["rk4"]
    if isinstance(stepper, FixedStepper):
        return stepper
    if isinstance(stepper, str):
        try:
            return _STEPPERS[stepper.lower()]
        except KeyError:
            available = ", ".join(sorted(_STEPPERS))
            raise ValueError(
                f"Unknown stepper '{stepper}'. Available: {available}."
            ) from None
    raise TypeError("stepper must be a name, a FixedStepper or None.")


__all__ = [
    "FixedStepper",
    "Euler",
    "Midpoint",
    "RK4",
    "register_stepper",
    "resolve_stepper",
]
