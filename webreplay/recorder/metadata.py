import math
import random
import string
import time
from datetime import datetime, timezone
from typing import Sequence

from webreplay.core.models import RecordedAction, SessionMetadata

_ID_ALPHABET = string.ascii_lowercase + string.digits


def now_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def generate_session_id() -> str:
    """Time-derived id with a random suffix, e.g. ``20250106_143022_k3j9x0a``."""
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    suffix = "".join(random.choices(_ID_ALPHABET, k=7))
    return f"{timestamp}_{suffix}"


def calculate_metadata(events: Sequence[RecordedAction]) -> SessionMetadata:
    """Summary statistics for a finished event sequence.

    ``url_changes`` counts adjacent pairs with differing URLs, so the first
    event never counts. ``average_action_duration`` is the rounded mean of
    the per-event ``duration`` values.
    """
    event_count = len(events)
    url_changes = sum(
        1 for previous, current in zip(events, events[1:])
        if current.url != previous.url
    )
    total = sum(event.duration or 0 for event in events)
    # half-up, so 2.5 rounds to 3
    average = math.floor(total / event_count + 0.5) if event_count else 0

    return SessionMetadata(
        event_count=event_count,
        url_changes=url_changes,
        average_action_duration=average,
    )
