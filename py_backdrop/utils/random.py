"""
Random number generation utilities.

All procedural generators draw from one shared NumPy ``Generator`` so a
whole scene can be reproduced from a single seed. Elevation sampling should
go through this module rather than Python's ``random``.
"""

from typing import Optional, Union

import numpy as np

# Global generator instance
_rng: Optional[np.random.Generator] = None


def set_random_seed(seed: Optional[Union[int, str]]) -> None:
    """
    Reseed the shared random generator.

    Args:
        seed: Integer or string seed. Strings are hashed into a stable
            integer so the same text always yields the same terrain.
            ``None`` seeds from OS entropy.
    """
    global _rng
    _rng = create_rng(seed)


def get_rng() -> np.random.Generator:
    """
    Get the shared random generator, creating an unseeded one on first use.

    Returns:
        NumPy random Generator
    """
    global _rng
    if _rng is None:
        _rng = create_rng(None)
    return _rng


def create_rng(seed: Optional[Union[int, str]]) -> np.random.Generator:
    """Build an independent generator from an int or string seed."""
    if isinstance(seed, str):
        # Python's hash() is salted per process; fold the bytes instead
        seed = int.from_bytes(seed.encode("utf-8"), "little") % (2**63)
    return np.random.default_rng(seed)
