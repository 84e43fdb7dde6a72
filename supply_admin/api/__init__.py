"""
HTTP API for the supply admin blob store.
"""

from .blob_store import STATE_FILE_NAME, StateFile, create_app

__all__ = ["STATE_FILE_NAME", "StateFile", "create_app"]
