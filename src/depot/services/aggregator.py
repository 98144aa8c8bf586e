"""Collection of every stored unit that belongs to one event."""

import asyncio
import logging
from typing import List, Optional

from depot.core.exceptions import NotFoundError, StorageError
from depot.models.units import RetrievedFile
from depot.services.naming import (
    content_type_for_object,
    object_prefix,
    original_filename_for_object,
)
from depot.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class RetrievalAggregator:
    """Finds and fetches all objects named with an event id prefix."""

    def __init__(self, storage: StorageBackend):
        self.storage = storage

    async def aggregate(self, event_id: str) -> List[RetrievedFile]:
        """Fetch every stored unit of an event.

        Objects are fetched concurrently. An object that fails to fetch is
        logged and left out; listing failures are not caught.

        Args:
            event_id: Event id to collect

        Returns:
            Retrieved files in listing order

        Raises:
            StorageError: If the store cannot be listed
            NotFoundError: If no object could be retrieved for the event
        """
        names = await asyncio.to_thread(self.storage.list)

        prefix = object_prefix(event_id)
        matched = [name for name in names if name.startswith(prefix)]

        results = await asyncio.gather(
            *(self._fetch(event_id, name) for name in matched)
        )
        files = [f for f in results if f is not None]

        if not files:
            raise NotFoundError(f"no payloads found for request_id {event_id}")

        logger.info(
            f"Retrieved {len(files)} of {len(matched)} matching object(s)",
            extra={"request_id": event_id},
        )
        return files

    async def _fetch(self, event_id: str, name: str) -> Optional[RetrievedFile]:
        try:
            data = await asyncio.to_thread(self.storage.get, name)
        except (NotFoundError, StorageError) as e:
            logger.warning(
                f"Error getting payload for {name}: {e}",
                extra={"request_id": event_id, "object_name": name},
            )
            return None

        return RetrievedFile(
            object_name=name,
            original_filename=original_filename_for_object(event_id, name),
            size=len(data),
            content_type=content_type_for_object(name),
            data=data,
        )
