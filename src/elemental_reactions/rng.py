from __future__ import annotations

import hashlib
import json
import logging
import random
import secrets
from typing import Any, Dict, Union

logger = logging.getLogger(__name__)

Seed = Union[int, str, bytes, None]

# Domains used by the engine's random draws.
DOMAIN_FORCED_POINTS = "forced_points"
DOMAIN_SCORCHED_TRIGGER = "scorched_trigger"
DOMAIN_SPORES = "spores"


def seed_bytes(seed: Seed) -> bytes:
    """Canonical byte form of a master seed. Ints are big-endian and minimal length."""
    if seed is None:
        return b""
    if isinstance(seed, bytes):
        return seed
    if isinstance(seed, int):
        return seed.to_bytes((seed.bit_length() + 7) // 8 or 1, "big", signed=False)
    if isinstance(seed, str):
        return seed.strip().encode("utf-8")
    raise TypeError("Unsupported seed type: %r" % (type(seed),))


class RNGManager:
    """Independent, reproducible random streams per reaction domain.

    A scorched roll never shifts the sequence of a spore roll, so replaying the
    same hits against the same seed gives the same outcome::

        rngs = RNGManager("arena-7")
        scorch = rngs.stream(DOMAIN_SCORCHED_TRIGGER)
    """

    def __init__(self, master_seed: Seed = None) -> None:
        self.master_seed = master_seed
        if master_seed is None:
            self._seed = secrets.token_bytes(16)
            logger.info("No master seed provided; generated random seed: %s", self._seed.hex())
        else:
            self._seed = seed_bytes(master_seed)
            logger.debug("Using master seed: %r", master_seed)
        self._streams: Dict[str, random.Random] = {}

    def derive_seed(self, domain: str, *identifiers: Any) -> int:
        """64-bit seed for ``domain`` (and optional identifiers), stable across runs."""
        payload = json.dumps(
            {"domain": domain, "ids": identifiers, "master": self._seed.hex()},
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
        )
        digest = hashlib.blake2b(payload.encode("utf-8"), digest_size=8).digest()
        return int.from_bytes(digest, "big", signed=False)

    def stream(self, domain: str) -> random.Random:
        """The shared stream for ``domain``; created on first use."""
        rng = self._streams.get(domain)
        if rng is None:
            rng = random.Random(self.derive_seed(domain))
            self._streams[domain] = rng
        return rng

    def get_master_seed_hex(self) -> str:
        return self._seed.hex()
