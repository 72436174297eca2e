"""Deterministic seed derivation for scenario generators."""

from __future__ import annotations

import hashlib
import random
from typing import Any, Optional


class SeedManager:
    """Derives independent seeds per generator from one round seed.

    Each generator draws from its own ``random.Random`` seeded with a SHA-256
    digest of the master seed and the generator's identifiers, so the same
    round seed reproduces the same scenario no matter which other scenarios
    were generated before it.

    Usage:
        seeds = SeedManager(42)
        rng = seeds.create_random_state("tour", 10)
    """

    def __init__(self, master_seed: Optional[int] = None) -> None:
        """Initialize the seed manager.

        Args:
            master_seed: Round seed. When None, derived seeds are None and
                generators are non-deterministic.
        """
        self.master_seed = master_seed

    def derive_seed(self, *components: Any) -> Optional[int]:
        """Positive 31-bit seed for ``components``, or None without a master seed."""
        if self.master_seed is None:
            return None

        seed_input = f"{self.master_seed}:" + ":".join(str(c) for c in components)
        digest = hashlib.sha256(seed_input.encode()).digest()
        return int.from_bytes(digest[:4], byteorder="big") & 0x7FFFFFFF

    def create_random_state(self, *components: Any) -> random.Random:
        """Fresh ``random.Random`` seeded from ``components`` (unseeded if no master seed)."""
        derived_seed = self.derive_seed(*components)
        rng = random.Random()
        if derived_seed is not None:
            rng.seed(derived_seed)
        return rng
