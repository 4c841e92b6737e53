from contextlib import asynccontextmanager
import logging
import os
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from api_v1 import router as router_v1
from api_v1.errors import ads_core_error_handler
from ads_core.config import settings
from ads_core.exceptions import AdsCoreError
from ads_core.logging_config import configure_logging, trace_id_ctx

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Application starting up...")
    logger.info(
        "CORS configuration | origins=%s | allow_credentials=%s",
        settings.cors_allowed_origins,
        settings.cors_allow_credentials,
    )

    from ads_core.container import get_container

    container = get_container()
    if not settings.amazon_ads.client_id or not settings.amazon_ads.client_secret:
        logger.warning("Amazon Ads client credentials are not configured; token calls will fail")

    yield

    logger.info("Application shutting down...")
    await container.http_client().aclose()
    await container.lock_manager().close()
    await container.database_helper().dispose()
    logger.info("HTTP client, Redis and database connections closed")


app = FastAPI(lifespan=lifespan, title="Amazon Ads credential gateway")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(router=router_v1, prefix=settings.api_v1_prefix)
app.add_exception_handler(AdsCoreError, ads_core_error_handler)


@app.middleware("http")
async def bind_trace_id(request: Request, call_next):
    # Assign/propagate a trace id for each request
    trace_id = request.headers.get("X-Trace-Id") or str(uuid.uuid4())
    token = trace_id_ctx.set(trace_id)
    try:
        response = await call_next(request)
    finally:
        trace_id_ctx.reset(token)
    # Include trace id in response for clients to propagate
    response.headers["X-Trace-Id"] = trace_id
    return response


if __name__ == "__main__":
    port = int(os.getenv("PORT", "8000"))
    host = os.getenv("HOST", "0.0.0.0")
    uvicorn.run("main:app", host=host, port=port, reload=True)
