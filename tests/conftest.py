"""Pytest configuration to ensure local imports work without install.

Adds the repository root to `sys.path` so `import specode` succeeds when
running tests directly (e.g., from the `tests/` directory) without
`pip install -e .`.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)


@pytest.fixture(autouse=True)
def _fresh_caches():
    """Each test starts with empty compilation caches."""
    from specode.numpy import compilation_cache as numpy_cache
    from specode.numba import compilation_cache as numba_cache

    numpy_cache().clear()
    numba_cache().clear()
    yield
    numpy_cache().clear()
    numba_cache().clear()
