from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.errors import APIError
from app.handlers import checkout_handler, image_handler, webhook_handler

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    s = get_settings()
    logger.info("Image generation: %s (%s)", s.image_provider, "key set" if s.gemini_api_key else "GEMINI_API_KEY missing")
    if s.storage_configured:
        logger.info("Storage: gs://%s", s.gcs_bucket_name)
    else:
        logger.warning("Storage: not configured (set GCS_BUCKET_NAME)")
    if not (s.stripe_secret_key and s.stripe_webhook_secret):
        logger.warning("Stripe: STRIPE_SECRET_KEY / STRIPE_WEBHOOK_SECRET not fully configured")
    if not s.resend_api_key:
        logger.warning("Email: no provider configured (set RESEND_API_KEY)")
    yield


app = FastAPI(title="Laser Engraving Storefront API", lifespan=lifespan)

app.include_router(image_handler.router)
app.include_router(checkout_handler.router)
app.include_router(webhook_handler.router)


@app.exception_handler(APIError)
async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}
