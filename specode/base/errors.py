class SpecodeError(Exception):
    """Base class for specode errors."""


class InvalidPolicy(SpecodeError, ValueError):
    """Raised when a specialization policy is not one of the enumerated values."""

    def __init__(self, value):
        self.value = value
        super().__init__(
            f"Unknown specialization policy {value!r}. Available: auto, none, full."
        )


class CompilationError(SpecodeError, RuntimeError):
    """A backend failed to build a solver entry point."""


class IntegrationError(SpecodeError, RuntimeError):
    """An adaptive integration did not reach the end of the time span."""


__all__ = [
    "SpecodeError",
    "InvalidPolicy",
    "CompilationError",
    "IntegrationError",
]
