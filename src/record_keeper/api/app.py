from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from record_keeper.api import forex, progress, tasks, users
from record_keeper.context import FatalHandler, ServerContext
from record_keeper.errors import GuardPoisonedError
from record_keeper.forex import ForexFeedClient, refresh_rates
from record_keeper.persistence import SnapshotGateway, WriteThrough
from record_keeper.settings import Settings

logger = logging.getLogger("record_keeper.api")

# Any port on localhost, plus the literal "null" origin sent by file:// pages.
CORS_ORIGIN_REGEX = r"^(http://localhost.*|null)$"
CORS_ALLOWED_HEADERS = ["Authorization", "Accept", "Content-Type"]


def build_context(settings: Settings, *, on_fatal: Optional[FatalHandler] = None) -> ServerContext:
    gateway = SnapshotGateway(settings.data_file)
    store = gateway.load()
    if settings.serves("forex"):
        store.preload_forex_defaults()
    return ServerContext(store, persist=WriteThrough(gateway), on_fatal=on_fatal)


def create_app(
    settings: Settings,
    *,
    context: Optional[ServerContext] = None,
    feed_client: Optional[ForexFeedClient] = None,
) -> FastAPI:
    ctx = context or build_context(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("starting", extra={"service": settings.service})
        if settings.serves("forex") and settings.forex_fetch_on_startup:
            client = feed_client or ForexFeedClient(
                urls=settings.feed_urls(),
                timeout_seconds=settings.forex_feed_timeout_seconds,
            )
            try:
                result = await refresh_rates(
                    ctx,
                    client,
                    deadline_seconds=settings.forex_fetch_deadline_seconds,
                )
            finally:
                if feed_client is None:
                    await client.aclose()
            logger.info("forex_refresh_done", extra={"count": result.merged})
        try:
            yield
        finally:
            logger.info("stopped", extra={"service": settings.service})

    app = FastAPI(title="record-keeper", lifespan=lifespan)
    app.state.context = ctx
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=CORS_ORIGIN_REGEX,
        allow_credentials=True,
        allow_methods=settings.allowed_methods(),
        allow_headers=CORS_ALLOWED_HEADERS,
        max_age=3600,
    )

    @app.exception_handler(GuardPoisonedError)
    async def _guard_poisoned(request: Request, exc: GuardPoisonedError) -> JSONResponse:
        logger.error(
            "guard_poisoned_request_refused",
            extra={"path": request.url.path, "error": repr(exc.cause)},
        )
        return JSONResponse({"detail": "service unavailable"}, status_code=500)

    if settings.serves("tasks"):
        app.include_router(tasks.router)
    if settings.serves("users"):
        app.include_router(users.router)
    if settings.serves("fitness"):
        app.include_router(progress.router)
    if settings.serves("forex"):
        app.include_router(forex.router)
    return app
