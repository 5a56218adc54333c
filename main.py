from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import sentry_sdk
import redis.asyncio as redis
import logging

from api import auth
from core.config import (
    APP_ENV,
    APP_NAME,
    CACHE_TIMEOUT_SECONDS,
    CORS_ORIGINS,
    LOG_FILE,
    REDIS_URL,
    SENTRY_DSN,
)
from core.exceptions import EXCEPTION_HANDLERS, StorageError
from db import engine
from logging_config import setup_logging
from models import Base
from utils.cache import InMemoryOtpCache, RedisOtpCache


setup_logging(APP_ENV, LOG_FILE)
logger = logging.getLogger(__name__)

if SENTRY_DSN:
    sentry_sdk.init(dsn=SENTRY_DSN, environment=APP_ENV, send_default_pii=False)


app = FastAPI(
    title=APP_NAME,
    description="User registration, login, JWT tokens and phone OTP verification",
    version="1.0.0",
    openapi_tags=[
        {"name": "Auth", "description": "Authentication and OTP verification"}
    ],
)

for exc_class, handler in EXCEPTION_HANDLERS.items():
    app.add_exception_handler(exc_class, handler)


# ✔ Request logger middleware (no headers or bodies: they carry tokens and codes)
@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.debug(f"Request: {request.method} {request.url.path}")
    response = await call_next(request)
    logger.debug(f"Response: {request.method} {request.url.path} -> {response.status_code}")
    return response


# ✔ CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


# ✔ Startup: tables + OTP cache
@app.on_event("startup")
async def startup_event():
    Base.metadata.create_all(bind=engine)

    if REDIS_URL:
        redis_connection = redis.from_url(
            REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=CACHE_TIMEOUT_SECONDS,
            socket_connect_timeout=CACHE_TIMEOUT_SECONDS,
        )
        app.state.otp_cache = RedisOtpCache(redis_connection, timeout=CACHE_TIMEOUT_SECONDS)
        logger.info("OTP cache: redis")
        try:
            await app.state.otp_cache.ping()
        except StorageError:
            logger.warning("Redis not reachable at startup; OTP requests will fail until it is")
    else:
        app.state.otp_cache = InMemoryOtpCache()
        logger.warning("REDIS_URL not set; OTP codes are kept in process memory")


@app.on_event("shutdown")
async def shutdown_event():
    cache = getattr(app.state, "otp_cache", None)
    if isinstance(cache, RedisOtpCache):
        await cache.close()


@app.get("/health")
def health() -> dict:
    cache = getattr(app.state, "otp_cache", None)
    return {
        "ok": True,
        "service": APP_NAME,
        "env": APP_ENV,
        "otp_cache": getattr(cache, "name", None),
    }


# ✔ Routers
app.include_router(auth.router)
