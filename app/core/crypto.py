"""Custodial wallet address derivation."""

import hashlib
import re
import time

WALLET_ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")


def derive_wallet_address(secret_key: str, consumer_id: str, timestamp_ms: int | None = None) -> str:
    """Derive a chain-style address from the marketplace secret.

    The seed ``{secret}-{consumer_id}-{timestamp_ms}`` is hashed into a
    private key, which is hashed again; the first 40 hex characters of the
    second digest form the address. The private key is never returned.
    """
    if timestamp_ms is None:
        timestamp_ms = time.time_ns() // 1_000_000
    seed = f"{secret_key}-{consumer_id}-{timestamp_ms}"
    private_key = "0x" + hashlib.sha256(seed.encode("utf-8")).hexdigest()
    address_hash = hashlib.sha256(private_key.encode("utf-8")).hexdigest()
    return "0x" + address_hash[:40]


def is_valid_wallet_address(address: str | None) -> bool:
    """Check the 0x-prefixed, 40 hex digit address format."""
    return bool(address) and WALLET_ADDRESS_PATTERN.match(address) is not None
