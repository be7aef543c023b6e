"""
errors.py - Exceptions raised by the mechanism engines.
"""
from __future__ import annotations


class InvalidTopologyError(ValueError):
    """
    The supplied gears/joints/links do not describe a mechanism the engine can solve.

    Raised at the boundary, before any traversal or solving, so callers never
    receive a half-updated collection.
    """
