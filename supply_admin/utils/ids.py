"""
Short random identifiers for entities, audit entries and activities.
"""

import random
import secrets

ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
DEFAULT_SIZE = 12


def _select_rng() -> random.Random:
    """Prefer the OS entropy source, fall back to the Mersenne Twister."""
    rng = secrets.SystemRandom()
    try:
        rng.random()
    except NotImplementedError:
        return random.Random()
    return rng


_rng = _select_rng()


def new_id(size: int = DEFAULT_SIZE) -> str:
    """
    Generate a collision-resistant short identifier.

    Args:
        size: Number of characters

    Returns:
        Identifier drawn from a 62-character alphabet
    """
    return "".join(_rng.choice(ALPHABET) for _ in range(size))
