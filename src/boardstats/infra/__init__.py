"""
boardstats Infrastructure - Snapshot storage components.

This module contains:
- cache: Immutable analytics snapshots and the in-memory snapshot manager
"""

__all__: list[str] = []
