import enum

from .errors import InvalidPolicy


class SpecializationPolicy(enum.Enum):
    """How far a solver entry point may specialize against the callback."""

    AUTO = "auto"
    NONE = "none"
    FULL = "full"


def coerce_policy(value) -> SpecializationPolicy:
    """Normalize ``value`` to a :class:`SpecializationPolicy`.

    ``None`` selects ``AUTO``. Strings are matched case-insensitively
    against the member values. Anything else raises :class:`InvalidPolicy`.
    """
    if value is None:
        return SpecializationPolicy.AUTO
    if isinstance(value, SpecializationPolicy):
        return value
    if isinstance(value, str):
        try:
            return SpecializationPolicy(value.strip().lower())
        except ValueError:
            raise InvalidPolicy(value) from None
    raise InvalidPolicy(value)


__all__ = [
    "SpecializationPolicy",
    "coerce_policy",
]
