from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import List, Optional

class Settings(BaseSettings):
    app_title: str = Field("Image Gateway")
    log_level: str = Field("INFO")
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])

    # Token verification
    jwt_secret: Optional[str] = Field(None)
    jwt_algorithms: List[str] = Field(default_factory=lambda: ["HS256"])
    jwt_identity_claim: str = Field("user_id")
    jwt_audience: Optional[str] = Field(None)

    # Object store
    storage_backend: str = Field("s3")
    aws_region: str = Field("us-east-1")
    s3_bucket: str = Field("image-gateway-bucket")
    aws_endpoint_url: Optional[str] = Field(None)
    aws_access_key_id: str = Field("test")
    aws_secret_access_key: str = Field("test")

    # Rate limiting
    rate_limiter_backend: str = Field("memory")
    redis_url: str = Field("redis://localhost:6379/0")
    upload_rate_limit: int = Field(10)
    upload_rate_window_seconds: int = Field(60)
    read_rate_limit: int = Field(100)
    read_rate_window_seconds: int = Field(60)
    # Upper bound on keys tracked by the in-memory limiters
    rate_limiter_max_keys: int = Field(10000)

    # Response cache
    cache_backend: str = Field("memory")
    default_cache_max_age: int = Field(86400)
    memory_cache_max_entries: int = Field(1024)

    # Header carrying the caller address when running behind a proxy/CDN
    client_ip_header: Optional[str] = Field(None)

    verify_webp_payload: bool = Field(False)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="allow",  # tolerate unknown vars if needed
    )

settings = Settings()
