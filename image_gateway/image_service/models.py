from typing import Dict, Optional
from datetime import datetime
from enum import Enum
import re
from urllib.parse import quote, unquote
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

WEBP_CONTENT_TYPE = "image/webp"
IMAGES_PREFIX = "/v1/images/"

UUID_V4_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

class ImageType(str, Enum):
    ORIGINAL = "original"
    COMPRESSED = "compressed"
    THUMBNAIL = "thumbnail"

class ImageKey(BaseModel):
    image_type: ImageType
    image_uuid: str

    @property
    def storage_key(self) -> str:
        return f"{self.image_type.value}/{self.image_uuid}.webp"

    @property
    def url(self) -> str:
        return f"{IMAGES_PREFIX}{self.storage_key}"

class ImageMetadata(BaseModel):
    """Custom metadata written alongside every stored image."""
    user_id: str
    upload_date: datetime
    image_type: ImageType

    def to_store_metadata(self) -> Dict[str, str]:
        # S3 user metadata is ASCII only with case-insensitive keys
        return {
            "user-id": quote(self.user_id, safe=""),
            "upload-date": self.upload_date.isoformat(),
            "image-type": self.image_type.value,
        }

    @classmethod
    def from_store_metadata(cls, metadata: Dict[str, str]) -> "ImageMetadata":
        return cls(
            user_id=unquote(metadata["user-id"]),
            upload_date=datetime.fromisoformat(metadata["upload-date"]),
            image_type=ImageType(metadata["image-type"]),
        )

class StoredObject(BaseModel):
    key: str
    body: bytes
    content_type: str
    etag: str
    cache_control: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)

    def http_headers(self) -> Dict[str, str]:
        """Native HTTP metadata of the object as response headers."""
        headers = {"Content-Type": self.content_type}
        if self.cache_control:
            headers["Cache-Control"] = self.cache_control
        return headers

    def image_metadata(self) -> Optional[ImageMetadata]:
        """Upload metadata, or None for objects not written by the gateway."""
        try:
            return ImageMetadata.from_store_metadata(self.metadata)
        except (KeyError, ValueError):
            return None

class CachedResponse(BaseModel):
    status_code: int = 200
    headers: Dict[str, str]
    body: bytes

class UploadResponseData(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    image_url: str
    image_uuid: str
    image_type: ImageType

class UploadResponse(BaseModel):
    code: int
    message: str
    data: Optional[UploadResponseData] = None
