"""Event identifier generation."""

import logging
import re
import secrets
import time
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

# "_" is reserved as the delimiter between event id and object name
EVENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9-]+$")


class EventIdGenerator(ABC):
    """Abstract base class for event id generators."""

    @abstractmethod
    def generate(self) -> str:
        """Return a new unique event id."""
        pass


class TimestampEventIdGenerator(EventIdGenerator):
    """Event ids made of a unix timestamp and 64 random bits."""

    RANDOM_BYTES = 8

    def generate(self) -> str:
        timestamp = int(time.time())
        try:
            token = secrets.token_hex(self.RANDOM_BYTES)
        except OSError as e:
            logger.warning(
                "Random source unavailable, using nanosecond clock",
                extra={"error": str(e)},
            )
            token = str(time.time_ns())
        return f"{timestamp}-{token}"


def is_valid_event_id(event_id: str) -> bool:
    """Check that an event id is non-empty and free of delimiter characters."""
    return bool(event_id) and EVENT_ID_PATTERN.match(event_id) is not None
