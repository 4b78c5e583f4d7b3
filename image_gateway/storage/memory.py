from typing import Dict, Optional
import hashlib
import logging

from image_gateway.image_service.models import StoredObject
from image_gateway.storage.base import ObjectStore

log = logging.getLogger(__name__)

# -------------------------
# In-memory store
# -------------------------
class InMemoryObjectStore(ObjectStore):
    """Dictionary-backed store for local development and tests."""

    def __init__(self):
        self.objects: Dict[str, StoredObject] = {}

    async def put(self, key: str, data: bytes, content_type: str, metadata: Dict[str, str]):
        self.objects[key] = StoredObject(
            key=key,
            body=bytes(data),
            content_type=content_type,
            etag=f'"{hashlib.md5(data).hexdigest()}"',
            metadata=dict(metadata),
        )
        log.debug("Stored %s in memory (%d bytes)", key, len(data))

    async def get(self, key: str) -> Optional[StoredObject]:
        return self.objects.get(key)
