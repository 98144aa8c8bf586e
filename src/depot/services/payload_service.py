"""Payload ingestion and retrieval orchestration."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional, Set

from depot.core.exceptions import InputError, StorageError
from depot.models.responses import IngestionResponse, ListResponse, RetrievalResponse
from depot.models.units import RawPayload, StorableUnit
from depot.services.aggregator import RetrievalAggregator
from depot.services.bundler import ArchiveBundler
from depot.services.decomposer import PayloadDecomposer
from depot.services.formatter import (
    format_ingestion,
    format_listing,
    format_raw,
    format_retrieval,
)
from depot.services.headers import filename_from_disposition
from depot.services.identifiers import EventIdGenerator, is_valid_event_id
from depot.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class PayloadService:
    """Ties decomposition, persistence and retrieval together.

    Persistence is fire-and-forget: ingest() answers as soon as the body is
    decomposed and the units are handed to a background task. Failed saves are
    logged and never retried.
    """

    def __init__(
        self,
        storage: StorageBackend,
        id_generator: EventIdGenerator,
        decomposer: Optional[PayloadDecomposer] = None,
        bundler: Optional[ArchiveBundler] = None,
    ):
        self.storage = storage
        self.id_generator = id_generator
        self.decomposer = decomposer or PayloadDecomposer()
        self.bundler = bundler or ArchiveBundler()
        self.aggregator = RetrievalAggregator(storage)
        self._pending: Set[asyncio.Task] = set()

    async def ingest(
        self,
        body: bytes,
        content_type: Optional[str],
        content_disposition: Optional[str] = None,
    ) -> IngestionResponse:
        """Accept a request body and schedule its persistence.

        Args:
            body: Complete request body
            content_type: Content-Type header, None when absent
            content_disposition: Content-Disposition header, if any

        Returns:
            Ingestion receipt carrying the new event id

        Raises:
            MalformedInputError: If a multipart body cannot be framed
        """
        timestamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
        event_id = self.id_generator.generate()
        original_filename = filename_from_disposition(content_disposition)

        units = self.decomposer.decompose(event_id, body, content_type, original_filename)

        task = asyncio.create_task(self._persist_units(event_id, units, timestamp))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

        logger.info(
            f"Accepted payload, size: {len(body)} bytes, units: {len(units)}",
            extra={"request_id": event_id, "content_type": content_type},
        )
        return format_ingestion(event_id, len(body), timestamp, original_filename)

    async def _persist_units(
        self, event_id: str, units: List[StorableUnit], timestamp: str
    ) -> None:
        """Save every unit of an event, logging failures.

        Runs detached from the request; exceptions never propagate. A failed
        unit is logged and skipped, the remaining units are still attempted.
        """
        saved = 0
        for unit in units:
            try:
                await asyncio.to_thread(
                    self.storage.save, unit.name, unit.data, unit.content_type
                )
            except StorageError as e:
                logger.error(
                    f"Error saving payload to storage: {e}",
                    extra={"request_id": event_id, "object_name": unit.name},
                )
                continue
            except Exception as e:
                logger.error(
                    "Unexpected error saving payload to storage",
                    extra={
                        "request_id": event_id,
                        "object_name": unit.name,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    },
                    exc_info=True,
                )
                continue
            saved += 1
            logger.info(
                f"Saved {unit.name} to storage",
                extra={"request_id": event_id, "received_at": timestamp},
            )

        logger.info(
            f"Saved {saved} of {len(units)} file(s) to storage",
            extra={"request_id": event_id, "received_at": timestamp},
        )

    async def drain(self) -> None:
        """Wait for every in-flight persistence task to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @staticmethod
    def validate_event_id(event_id: Optional[str]) -> str:
        """Reject missing or malformed event ids.

        Raises:
            InputError: If the id is empty or contains delimiter characters
        """
        event_id = (event_id or "").strip()
        if not event_id:
            raise InputError("Missing request_id query parameter")
        if not is_valid_event_id(event_id):
            raise InputError(f"Invalid request_id: {event_id}")
        return event_id

    async def retrieve(self, event_id: str) -> RetrievalResponse:
        """Return every unit of an event as base64 metadata entries."""
        event_id = self.validate_event_id(event_id)
        files = await self.aggregator.aggregate(event_id)
        return format_retrieval(event_id, files)

    async def retrieve_raw(self, event_id: str) -> RawPayload:
        """Return the single unit of an event, or a ZIP of all its units."""
        event_id = self.validate_event_id(event_id)
        files = await self.aggregator.aggregate(event_id)
        retrieval = format_retrieval(event_id, files)
        return format_raw(event_id, retrieval.files, self.bundler)

    async def list_objects(self) -> ListResponse:
        names = await asyncio.to_thread(self.storage.list)
        return format_listing(names)
