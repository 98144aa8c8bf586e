"""
Payload pipeline services.

Decomposes request bodies into named storage units, persists them in the
background, and aggregates stored units back into responses.
"""

from depot.services.aggregator import RetrievalAggregator
from depot.services.bundler import ArchiveBundler
from depot.services.decomposer import PayloadDecomposer
from depot.services.identifiers import EventIdGenerator, TimestampEventIdGenerator
from depot.services.payload_service import PayloadService

__all__ = [
    "ArchiveBundler",
    "EventIdGenerator",
    "PayloadDecomposer",
    "PayloadService",
    "RetrievalAggregator",
    "TimestampEventIdGenerator",
]
