from abc import ABC, abstractmethod
from typing import Dict, Optional

from image_gateway.image_service.models import StoredObject

class ObjectStore(ABC):
    """Key/value blob store with per-object metadata.

    A put to an existing key replaces the object (last write wins).
    """

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str, metadata: Dict[str, str]):
        ...

    @abstractmethod
    async def get(self, key: str) -> Optional[StoredObject]:
        """Returns the object, or None when the key does not exist."""
        ...

    def close(self):
        pass
