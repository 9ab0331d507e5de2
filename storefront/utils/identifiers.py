"""Record identifiers and display numbers."""

import uuid


def generate_id() -> str:
    """Return a random 128-bit identifier as 32 lowercase hex characters."""
    return uuid.uuid4().hex


def generate_order_number(sequence: int, prefix: str = "ORD") -> str:
    """Format a display order number, e.g. ``ORD-007``."""
    return f"{prefix}-{sequence:03d}"
