"""Prefixed ID generation utility."""

import hashlib


def generate_id(prefix: str, *parts: str) -> str:
    """Generate a prefixed ID derived from its parts.

    IDs are content hashes so that identical input always yields identical
    output across runs.

    Args:
        prefix: The prefix (e.g., "grp_", "chain_", "run_").
        parts: Strings identifying the record; order matters.

    Returns:
        A string like "grp_a1b2c3d4e5f6".
    """
    digest = hashlib.sha256("\x1f".join(parts).encode("utf-8")).hexdigest()
    return f"{prefix}{digest[:12]}"
