"""Photo Keys — client-side generated identifiers for photo blobs.

Invariants:
    - Keys are "photo_<base36 ms timestamp>_<random suffix>" and never reused
"""

import time

from equiptrack.core.domain_types import PhotoKey
from equiptrack.core.equipment_item import random_suffix, to_base36

PHOTO_KEY_PREFIX = "photo_"


def new_photo_key() -> PhotoKey:
    return PhotoKey(
        f"{PHOTO_KEY_PREFIX}{to_base36(time.time_ns() // 1_000_000)}_{random_suffix(10)}"
    )
