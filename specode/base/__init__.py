"""Core types shared by every specode backend.

Holds no solver logic: the policy enumeration, problem descriptor,
callback shapes, dispatch strategies with the selector, and the
compilation cache that backends build on.
"""

from .errors import SpecodeError, InvalidPolicy, CompilationError, IntegrationError
from .policy import SpecializationPolicy, coerce_policy
from .shape import CallbackShape, callback_shape, is_inplace
from .strategy import DispatchStrategy, Generic, Specialized, Hybrid, select
from .problem import Problem, remake
from .wrappers import WrappedCallback, wrap_callback
from .cache import CacheStats, CompilationCache

__all__ = [
    "SpecodeError",
    "InvalidPolicy",
    "CompilationError",
    "IntegrationError",
    "SpecializationPolicy",
    "coerce_policy",
    "CallbackShape",
    "callback_shape",
    "is_inplace",
    "DispatchStrategy",
    "Generic",
    "Specialized",
    "Hybrid",
    "select",
    "Problem",
    "remake",
    "WrappedCallback",
    "wrap_callback",
    "CacheStats",
    "CompilationCache",
]
