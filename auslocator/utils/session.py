"""Session identifiers for grouping a user's interactions."""

import time
import uuid


def generate_session_id() -> str:
    """Time-based prefix plus random suffix, e.g. ``session_1718000000000_3f9a1c0de``."""
    return f"session_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"
