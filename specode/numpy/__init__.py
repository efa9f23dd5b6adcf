"""NumPy-backed solver for specode problems.

Re-exports the core problem types from :mod:`specode.base`, so
``from specode.numpy import Problem, solve`` is all a user needs.
"""

from ..base import (
    InvalidPolicy,
    Problem,
    SpecializationPolicy,
    remake,
    select,
)
from .steppers import FixedStepper, register_stepper, resolve_stepper
from .compiler import EntryPoint, compilation_cache, entry_point
from .solve import Solution, solve, solve_adaptive, time_grid, warmup

__all__ = [
    "InvalidPolicy",
    "Problem",
    "SpecializationPolicy",
    "remake",
    "select",
    "FixedStepper",
    "register_stepper",
    "resolve_stepper",
    "EntryPoint",
    "compilation_cache",
    "entry_point",
    "Solution",
    "solve",
    "solve_adaptive",
    "time_grid",
    "warmup",
]
