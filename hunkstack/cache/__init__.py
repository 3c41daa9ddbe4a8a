"""Cache module for hunkstack.

This package provides caching utilities for compose sessions:
- bootstrap: BootstrapCache, a memoizing store with an access TTL
"""

from hunkstack.cache.bootstrap import BootstrapCache


__all__ = [
    "BootstrapCache",
]
