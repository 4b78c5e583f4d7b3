from datetime import datetime, timezone
from typing import Dict, Optional
from io import BytesIO
from urllib.parse import urlencode
import logging
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import Request
from PIL import Image, UnidentifiedImageError
from starlette.datastructures import URL, QueryParams, UploadFile

from image_gateway.auth.token import Claim, TokenVerifier, bearer_token
from image_gateway.cache.base import ResponseCache
from image_gateway.exceptions import NotFoundError, RateLimitError, StorageError, ValidationError
from image_gateway.image_service.models import (
    CachedResponse,
    ImageKey,
    ImageMetadata,
    ImageType,
    StoredObject,
    UUID_V4_PATTERN,
    WEBP_CONTENT_TYPE,
)
from image_gateway.ratelimit.base import RateLimiter
from image_gateway.storage.base import ObjectStore

log = logging.getLogger(__name__)

UNKNOWN_ADDRESS = "unknown"

# Fixed hardening headers for every served image
SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'self'; object-src 'none'",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
}

def authenticate(authorization: Optional[str], verifier: TokenVerifier) -> Claim:
    """Verifies the bearer token of a request and returns its claim."""
    return verifier.verify(bearer_token(authorization))

async def check_rate_limit(limiter: RateLimiter, key: str, detail: str):
    """Consumes one unit of quota for key, raising when it is exhausted."""
    if not await limiter.allow(key):
        raise RateLimitError(detail)

def parse_image_uuid(value: Optional[str]) -> str:
    if not value or not UUID_V4_PATTERN.match(value):
        raise ValidationError("Bad Request: Missing or invalid image UUID parameter")
    return value

def parse_image_type(value: Optional[str]) -> ImageType:
    """Unknown types degrade to original instead of being rejected."""
    if value is None:
        return ImageType.ORIGINAL
    try:
        return ImageType(value)
    except ValueError:
        log.warning("Invalid image type '%s' provided, defaulting to 'original'.", value)
        return ImageType.ORIGINAL

def media_type(content_type: Optional[str]) -> str:
    return (content_type or "").split(";")[0].strip().lower()

async def extract_image_bytes(request: Request) -> bytes:
    """Reads the WebP payload from a multipart ``image`` field or a raw body."""
    content_type = request.headers.get("content-type", "")
    kind = media_type(content_type)

    if kind == "multipart/form-data":
        form = await request.form()
        image = form.get("image")
        if not isinstance(image, UploadFile):
            raise ValidationError('Bad Request: No valid image file found in form data (expected field name "image")')
        if "webp" not in (image.content_type or ""):
            raise ValidationError(f"Bad Request: Image must be WebP format, received {image.content_type}")
        return await image.read()

    if kind == WEBP_CONTENT_TYPE:
        data = await request.body()
        if not data:
            raise ValidationError("Bad Request: Empty image payload received")
        return data

    raise ValidationError(
        f"Bad Request: Invalid Content-Type. Expected 'multipart/form-data' or 'image/webp', received '{content_type}'"
    )

def validate_webp_bytes(data: bytes):
    """Validate that the payload really decodes as a WebP image."""
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError):
        raise ValidationError("Bad Request: Invalid image file")
    if (img.format or "").upper() != "WEBP":
        raise ValidationError(f"Bad Request: Image must be WebP format, received {img.format}")

async def save_image(store: ObjectStore, key: ImageKey, data: bytes, user_id: str) -> ImageMetadata:
    """Writes the image and its ownership metadata to the object store."""
    meta = ImageMetadata(
        user_id=user_id,
        upload_date=datetime.now(timezone.utc),
        image_type=key.image_type,
    )
    try:
        await store.put(
            key.storage_key,
            data,
            content_type=WEBP_CONTENT_TYPE,
            metadata=meta.to_store_metadata(),
        )
    except (BotoCoreError, ClientError) as e:
        log.error(f"Failed to put object to store: {e}")
        raise StorageError(f"Failed to store image: {e}")

    log.info("Stored image %s for user %s (%d bytes)", key.storage_key, user_id, len(data))
    return meta

async def fetch_image(store: ObjectStore, path: str) -> StoredObject:
    try:
        obj = await store.get(path)
    except (BotoCoreError, ClientError) as e:
        log.error(f"Failed to get object from store: {e}")
        raise StorageError(f"Failed to read image: {e}")
    if obj is None:
        log.info("Image not found in store: %s", path)
        raise NotFoundError(f"Image not found at path: {path}")
    meta = obj.image_metadata()
    if meta is not None:
        log.debug("Serving %s uploaded by %s at %s", path, meta.user_id, meta.upload_date.isoformat())
    return obj

def build_image_headers(obj: StoredObject, default_max_age: int = 86400) -> Dict[str, str]:
    headers = obj.http_headers()
    headers["ETag"] = obj.etag
    if "Cache-Control" not in headers:
        headers["Cache-Control"] = f"max-age={default_max_age}"
    headers.update(SECURITY_HEADERS)
    return headers

def canonical_cache_key(url: URL) -> str:
    """Request URL with a sorted query string and no fragment."""
    query = urlencode(sorted(QueryParams(url.query).multi_items()))
    return str(url.replace(query=query, fragment=""))

def client_address(request: Request, header: Optional[str] = None) -> str:
    if header:
        value = request.headers.get(header)
        if value:
            # X-Forwarded-For style lists carry the original client first
            return value.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_ADDRESS

async def populate_cache(cache: ResponseCache, key: str, response: CachedResponse):
    """Background cache write; failures are only logged."""
    try:
        await cache.put(key, response)
    except Exception as e:
        log.error("Failed to cache response for %s: %s", key, e)
