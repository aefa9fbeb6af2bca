from __future__ import annotations

"""Randomness helpers for message selection and seeding."""

import logging
import os
import random
from typing import Optional, Sequence, TypeVar

import numpy as np

logger = logging.getLogger(__name__)

T = TypeVar("T")


def seed_if_needed() -> Optional[int]:
    """Seed RNGs if SEED env var is set. Returns the seed that was applied."""
    seed = os.environ.get("SEED")
    if seed is None:
        return None
    try:
        s = int(seed)
    except ValueError:
        logger.warning("Ignoring non-integer SEED %r", seed)
        return None
    random.seed(s)
    np.random.seed(s)
    return s


def choose(items: Sequence[T], rng: Optional[random.Random] = None) -> T:
    """Pick one element uniformly, from ``rng`` when given."""
    if not items:
        raise ValueError("cannot choose from an empty sequence")
    return (rng or random).choice(list(items))
