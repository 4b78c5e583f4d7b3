from fastapi import Request
from image_gateway.auth.token import TokenVerifier
from image_gateway.cache.base import ResponseCache
from image_gateway.ratelimit.base import RateLimiter
from image_gateway.storage.base import ObjectStore

def get_token_verifier(request: Request) -> TokenVerifier:
    """Dependency provider for TokenVerifier"""
    return request.app.state.token_verifier

def get_object_store(request: Request) -> ObjectStore:
    """Dependency provider for ObjectStore"""
    return request.app.state.store

def get_upload_rate_limiter(request: Request) -> RateLimiter:
    """Dependency provider for the upload-by-identity RateLimiter"""
    return request.app.state.upload_rate_limiter

def get_read_rate_limiter(request: Request) -> RateLimiter:
    """Dependency provider for the read-by-address RateLimiter"""
    return request.app.state.read_rate_limiter

def get_response_cache(request: Request) -> ResponseCache:
    """Dependency provider for ResponseCache"""
    return request.app.state.cache
