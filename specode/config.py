"""
specode configuration
=====================

Module-level settings read by the backends when they build entry points.
They never influence which dispatch strategy is selected for a problem;
that decision depends on the problem's policy and callback shape only.

Change them before the first solve, e.g.::

    import specode.config
    specode.config.NUMBA_FASTMATH = False
"""

# ============================================================================
# Numba compilation flags
# ============================================================================
# Passed to ``numba.njit`` for every jitted loop and kernel.
NUMBA_FASTMATH: bool = True
NUMBA_NOGIL: bool = True

# On-disk caching does not apply: entry points are closures built at runtime.
# Set this to cache jitted user callbacks that specode compiles itself.
NUMBA_CACHE_CALLBACKS: bool = False

# ============================================================================
# Diagnostics
# ============================================================================
# Log a warning once a single backend holds more than this many fully
# specialized entry points (0 disables the warning).
FULL_SPECIALIZATION_WARN_THRESHOLD: int = 32


def numba_options() -> dict:
    """Keyword arguments for ``numba.njit`` built from the current settings."""
    return {"fastmath": NUMBA_FASTMATH, "nogil": NUMBA_NOGIL}
