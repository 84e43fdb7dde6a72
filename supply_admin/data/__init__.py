"""
Seed data for the supply admin client core.
"""

from .initial_state import create_initial_state

__all__ = ["create_initial_state"]
