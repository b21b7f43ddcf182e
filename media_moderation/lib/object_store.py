"""
Object storage client used for relocating uploaded files.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional

logger = logging.getLogger(__name__)


class ObjectStore(ABC):
    """Moves objects between buckets."""

    @abstractmethod
    def move(self, src_bucket: str, src_file: str, dest_bucket: str, dest_file: str) -> bool:
        """Move one object; return False if the move did not happen."""


class InMemoryObjectStore(ObjectStore):
    """
    Simulated object store for development/testing.
    In production, back this with the storage provider's client.
    """

    def __init__(self, objects: Optional[Dict[str, Iterable[str]]] = None, assume_present: bool = False):
        # Treat unseen source objects as uploaded out of band
        self.assume_present = assume_present
        self.buckets: Dict[str, Dict[str, bytes]] = {}
        for bucket, names in (objects or {}).items():
            for name in names:
                self.put(bucket, name)
        self.moves = []

    def put(self, bucket: str, name: str, data: bytes = b"") -> None:
        self.buckets.setdefault(bucket, {})[name] = data

    def exists(self, bucket: str, name: str) -> bool:
        return name in self.buckets.get(bucket, {})

    def move(self, src_bucket: str, src_file: str, dest_bucket: str, dest_file: str) -> bool:
        self.moves.append((src_bucket, src_file, dest_bucket, dest_file))
        if self.assume_present and not self.exists(src_bucket, src_file):
            self.put(src_bucket, src_file)
        if not self.exists(src_bucket, src_file):
            logger.error(f"gs://{src_bucket}/{src_file} not found")
            return False

        data = self.buckets[src_bucket].pop(src_file)
        self.put(dest_bucket, dest_file, data)
        logger.info(f"gs://{src_bucket}/{src_file} moved to gs://{dest_bucket}/{dest_file}")
        return True
