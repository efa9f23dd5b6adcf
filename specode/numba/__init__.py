"""Numba-backed solver for specode problems.

Same surface as :mod:`specode.numpy`. Under ``FULL`` the callback and
the time loop are compiled together; under ``AUTO`` only the stage
arithmetic is jitted; under ``NONE`` nothing problem-specific is.
"""

from ..base import (
    InvalidPolicy,
    Problem,
    SpecializationPolicy,
    remake,
    select,
)
from ..numpy.solve import Solution
from .steppers import JitStepper, resolve_stepper
from .compiler import compilation_cache, entry_point, jit_callback
from .solve import solve, warmup

__all__ = [
    "InvalidPolicy",
    "Problem",
    "SpecializationPolicy",
    "remake",
    "select",
    "Solution",
    "JitStepper",
    "resolve_stepper",
    "compilation_cache",
    "entry_point",
    "jit_callback",
    "solve",
    "warmup",
]
