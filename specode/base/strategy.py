"""Dispatch strategies and the specialization selector.

A strategy says how a backend should invoke the user callback:

* :class:`Generic` - one type-erased entry point shared by every problem.
* :class:`Specialized` - an entry point compiled for the exact callback.
* :class:`Hybrid` - late wrapping: the step kernel is compiled per calling
  convention and element kind while the callback itself stays type-erased.

``select`` is pure. Its result depends on ``(policy, shape)`` only.
"""

from dataclasses import dataclass
from typing import Hashable, Tuple

from .policy import SpecializationPolicy, coerce_policy
from .shape import CallbackShape


@dataclass(frozen=True)
class DispatchStrategy:
    kind = "abstract"
    wraps_callback = True

    @property
    def key(self) -> Tuple[Hashable, ...]:
        raise NotImplementedError


@dataclass(frozen=True)
class Generic(DispatchStrategy):
    kind = "generic"
    wraps_callback = True

    @property
    def key(self) -> Tuple[Hashable, ...]:
        return ("generic",)


@dataclass(frozen=True)
class Specialized(DispatchStrategy):
    shape: CallbackShape
    kind = "specialized"
    wraps_callback = False

    @property
    def key(self) -> Tuple[Hashable, ...]:
        return ("specialized", self.shape)


@dataclass(frozen=True)
class Hybrid(DispatchStrategy):
    inplace: bool
    dtype_kind: str
    ndim: int
    kind = "hybrid"
    wraps_callback = True

    @property
    def key(self) -> Tuple[Hashable, ...]:
        return ("hybrid", self.inplace, self.dtype_kind, self.ndim)


def select(policy, callback_shape: CallbackShape) -> DispatchStrategy:
    """Choose the dispatch strategy for ``callback_shape`` under ``policy``.

    An absent policy means ``AUTO``; unknown values raise
    :class:`~specode.base.errors.InvalidPolicy`.
    """
    policy = coerce_policy(policy)
    if not isinstance(callback_shape, CallbackShape):
        raise TypeError("callback_shape must be a CallbackShape.")

    if policy is SpecializationPolicy.NONE:
        return Generic()
    if policy is SpecializationPolicy.FULL:
        return Specialized(callback_shape)
    return Hybrid(
        inplace=callback_shape.inplace,
        dtype_kind=callback_shape.dtype.kind,
        ndim=callback_shape.ndim,
    )


__all__ = [
    "DispatchStrategy",
    "Generic",
    "Specialized",
    "Hybrid",
    "select",
]
