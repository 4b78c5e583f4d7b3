from fastapi import APIRouter, BackgroundTasks, Depends, Header, Query, Request, Response
from typing import Optional
import logging

from image_gateway.auth.token import TokenVerifier
from image_gateway.cache.base import ResponseCache
from image_gateway.dependencies.dependencies import (
    get_object_store,
    get_read_rate_limiter,
    get_response_cache,
    get_token_verifier,
    get_upload_rate_limiter,
)
from image_gateway.exceptions import ValidationError
from image_gateway.image_service import service
from image_gateway.image_service.models import CachedResponse, ImageKey, UploadResponse, UploadResponseData
from image_gateway.ratelimit.base import RateLimiter
from image_gateway.responses import success_response
from image_gateway.settings import settings
from image_gateway.storage.base import ObjectStore

log = logging.getLogger(__name__)

router = APIRouter(
    prefix="/v1/images",
    tags=["image-gateway"],
    redirect_slashes=False,
)

@router.post("/upload", response_model=UploadResponse)
async def upload_image(
    request: Request,
    image_uuid: Optional[str] = Query(None),
    image_type: Optional[str] = Query(None, alias="type"),
    authorization: Optional[str] = Header(None),
    verifier: TokenVerifier = Depends(get_token_verifier),
    limiter: RateLimiter = Depends(get_upload_rate_limiter),
    store: ObjectStore = Depends(get_object_store),
):
    """Stores a WebP image under ``{type}/{image_uuid}.webp``.

    Every gate runs before anything is written: token, identity, upload quota
    (keyed by user id), UUID, then payload.
    """
    claim = service.authenticate(authorization, verifier)
    await service.check_rate_limit(limiter, claim.user_id, "Too Many Upload Requests for this user")

    uuid = service.parse_image_uuid(image_uuid)
    key = ImageKey(image_type=service.parse_image_type(image_type), image_uuid=uuid)

    data = await service.extract_image_bytes(request)
    if settings.verify_webp_payload:
        service.validate_webp_bytes(data)

    await service.save_image(store, key, data, claim.user_id)

    body = UploadResponseData(image_url=key.url, image_uuid=uuid, image_type=key.image_type)
    return success_response(body.model_dump(mode="json", by_alias=True))

@router.get("/{image_path:path}")
async def get_image(
    image_path: str,
    request: Request,
    background_tasks: BackgroundTasks,
    authorization: Optional[str] = Header(None),
    verifier: TokenVerifier = Depends(get_token_verifier),
    limiter: RateLimiter = Depends(get_read_rate_limiter),
    cache: ResponseCache = Depends(get_response_cache),
    store: ObjectStore = Depends(get_object_store),
):
    """Serves the raw image bytes stored at ``image_path``.

    Reads are throttled by caller address before the token is checked so that
    garbage tokens still consume quota.
    """
    if not image_path:
        raise ValidationError("Bad Request: Image path is missing")

    address = service.client_address(request, settings.client_ip_header)
    await service.check_rate_limit(limiter, address, "Too Many Read Requests")

    service.authenticate(authorization, verifier)

    cache_key = service.canonical_cache_key(request.url)
    cached = await cache.match(cache_key)
    if cached is not None:
        return Response(content=cached.body, status_code=cached.status_code, headers=cached.headers)

    obj = await service.fetch_image(store, image_path)
    headers = service.build_image_headers(obj, settings.default_cache_max_age)

    background_tasks.add_task(
        service.populate_cache,
        cache,
        cache_key,
        CachedResponse(status_code=200, headers=headers, body=obj.body),
    )
    return Response(content=obj.body, status_code=200, headers=headers)
