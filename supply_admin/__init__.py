"""
Supply admin client core.

State synchronization and persistence layer for the supply/inventory
administration tool: reducer-driven store, repository fallback chain and
cross-context change notification.
"""

__version__ = "0.1.0"
