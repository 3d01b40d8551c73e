"""
Test fixtures for deterministic testing.

This module provides:
- seed_planner: fills an AppContext with a small pinned planner dataset
- only_rule: switches off every notification rule except one
"""

from .planner_fixtures import only_rule, seed_planner

__all__ = ["seed_planner", "only_rule"]
