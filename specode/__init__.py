"""specode: specialization levels for fixed-step ODE solving.

Public API mirrors the NumPy backend for convenience while keeping the
module split clean: shared types live in ``specode.base``, solvers in
``specode.numpy`` and ``specode.numba``.
"""

from . import base
from . import numpy as numpy_backend
from . import numba as numba_backend
from .base import (
    SpecodeError,
    InvalidPolicy,
    CompilationError,
    IntegrationError,
    SpecializationPolicy,
    CallbackShape,
    callback_shape,
    DispatchStrategy,
    Generic,
    Specialized,
    Hybrid,
    select,
    Problem,
    remake,
)
from .numpy import (
    Solution,
    solve,
    solve_adaptive,
    warmup,
    entry_point,
    resolve_stepper,
    register_stepper,
    FixedStepper,
)

numpy = numpy_backend
numba = numba_backend

__all__ = [
    "SpecodeError",
    "InvalidPolicy",
    "CompilationError",
    "IntegrationError",
    "SpecializationPolicy",
    "CallbackShape",
    "callback_shape",
    "DispatchStrategy",
    "Generic",
    "Specialized",
    "Hybrid",
    "select",
    "Problem",
    "remake",
    "Solution",
    "solve",
    "solve_adaptive",
    "warmup",
    "entry_point",
    "resolve_stepper",
    "register_stepper",
    "FixedStepper",
    "base",
    "numpy",
    "numba",
]

__version__ = "0.1.0"
