"""Event type enumerations."""

from enum import Enum


class EventType(str, Enum):
    """All event types on the deck progress stream."""

    # Per-slide lifecycle
    START = "start"
    GENERATING = "generating"
    END = "end"

    # Accounting
    USAGE = "usage"

    # Run-level
    ERROR = "error"
    END_OF_RUN = "end-of-run"
