"""Template id allocation.

The scanner stores templates in numbered slots but cannot list them, so the
caller's own records decide which id to enroll next.
"""
from __future__ import annotations

from typing import Iterable, Optional

MIN_TEMPLATE_ID = 1


def validate_template_id(template_id) -> int:
    """Return template_id if it is a positive int, else raise ValueError."""
    if isinstance(template_id, bool) or not isinstance(template_id, int):
        raise ValueError(f"Template id must be an int, got {template_id!r}")
    if template_id < MIN_TEMPLATE_ID:
        raise ValueError(f"Template id must be >= {MIN_TEMPLATE_ID}, got {template_id}")
    return template_id


def next_template_id(used_ids: Iterable[Optional[int]], capacity: Optional[int] = None) -> int:
    """Pick the template id for the next enrollment.

    Uses the highest id in use plus one (1 if nothing is enrolled), so ids
    freed by deletion are not reused while higher ids exist. When that would
    exceed ``capacity`` the lowest free slot is used instead.

    Args:
        used_ids: Ids currently assigned; None entries are skipped
        capacity: Number of template slots on the sensor, or None for unbounded

    Raises:
        ValueError: if every slot up to capacity is taken
    """
    used = {validate_template_id(i) for i in used_ids if i is not None}
    candidate = max(used) + 1 if used else MIN_TEMPLATE_ID

    if capacity is None or candidate <= capacity:
        return candidate

    for slot in range(MIN_TEMPLATE_ID, capacity + 1):
        if slot not in used:
            return slot
    raise ValueError(f"No free template slot (capacity {capacity})")
