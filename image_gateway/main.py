from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from contextlib import asynccontextmanager
import uvicorn
import logging

from image_gateway.auth.token import TokenVerifier
from image_gateway.resources import build_object_store, build_rate_limiters, build_redis, build_response_cache
from image_gateway.settings import settings
from image_gateway.routers.image_service import router as image_router
from image_gateway.exceptions import add_exception_handlers

logging.basicConfig(level=settings.log_level)
log = logging.getLogger("image-gateway")

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
        Async context manager for FastAPI application lifecycle events.
        Initializes and closes resources (object store, rate limiters, cache) for the application.
    """
    # Initialize resources
    redis = build_redis(settings)
    app.state.token_verifier = TokenVerifier.from_settings(settings)
    app.state.store = build_object_store(settings)
    app.state.upload_rate_limiter, app.state.read_rate_limiter = build_rate_limiters(settings, redis)
    app.state.cache = build_response_cache(settings, redis)
    yield
    # Cleanup resources
    app.state.store.close()
    if redis is not None:
        await redis.aclose()
        log.info("Closed Redis client")

# Initialize App
app = FastAPI(
    title=settings.app_title,
    lifespan=lifespan,
    redirect_slashes=False,
    description="Authenticated WebP image upload and retrieval gateway",
)

# Add exception handlers
add_exception_handlers(app)

# CORS - Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# Add the routers
app.include_router(image_router)

# Check Health
@app.get("/", response_class=PlainTextResponse)
def read_root():
    """
        Default end point

    """
    return "Image Gateway is running."

if __name__ == "__main__":
    uvicorn.run("image_gateway.main:app", host="0.0.0.0", port=8000, reload=True)
