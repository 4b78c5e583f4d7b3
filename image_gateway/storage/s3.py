import boto3
from typing import Dict, Optional
from botocore.exceptions import ClientError
from fastapi.concurrency import run_in_threadpool
from image_gateway.image_service.models import StoredObject
from image_gateway.settings import Settings, settings as default_settings
from image_gateway.storage.base import ObjectStore
import logging

log = logging.getLogger(__name__)

MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}

# -------------------------
# S3 Object Store
# -------------------------
class S3ObjectStore(ObjectStore):
    def __init__(self, settings: Settings = default_settings):
        self.bucket = settings.s3_bucket
        session = boto3.session.Session(region_name=settings.aws_region)
        kwargs = {
            "aws_access_key_id": settings.aws_access_key_id,
            "aws_secret_access_key": settings.aws_secret_access_key,
        }
        if settings.aws_endpoint_url:
            kwargs["endpoint_url"] = settings.aws_endpoint_url

        self.client = session.client("s3", **kwargs)
        log.info("Initialized S3 client")

        # Ensure bucket exists at initialization
        self.ensure_bucket()

    def ensure_bucket(self):
        try:
            self.client.head_bucket(Bucket=self.bucket)
            log.debug("Bucket %s already exists", self.bucket)
        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            if error_code in MISSING_KEY_CODES or error_code == "NoSuchBucket":
                self.client.create_bucket(Bucket=self.bucket)
                log.info("Created bucket %s", self.bucket)
            else:
                log.error("Failed to check/create bucket: %s", e)
                raise

    async def put(self, key: str, data: bytes, content_type: str, metadata: Dict[str, str]):
        # boto3 is blocking, keep it off the event loop
        await run_in_threadpool(
            self.client.put_object,
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
            Metadata=metadata,
        )
        log.debug("Uploaded %s to s3://%s/%s", key, self.bucket, key)

    async def get(self, key: str) -> Optional[StoredObject]:
        try:
            resp = await run_in_threadpool(self.client.get_object, Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response["Error"]["Code"] in MISSING_KEY_CODES:
                return None
            raise
        body = await run_in_threadpool(resp["Body"].read)
        return StoredObject(
            key=key,
            body=body,
            content_type=resp.get("ContentType") or "application/octet-stream",
            etag=resp["ETag"],
            cache_control=resp.get("CacheControl"),
            metadata=resp.get("Metadata", {}),
        )

    def close(self):
        self.client.close()
        log.info("Closed S3 client")
