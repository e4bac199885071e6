# SPDX-License-Identifier: Apache-2.0
"""FastAPI app factory. Thin layer: security middleware + routers only."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from campusconnect.config import settings
from campusconnect.core.security import add_security_middleware, get_limiter
from campusconnect.database import Store
from campusconnect.routers import (
    auth,
    badges,
    chatbot,
    connections,
    messages,
    posts,
    presence,
    system,
    users,
    workshops,
)
from campusconnect.services.media_service import URL_PREFIX, ensure_upload_dirs

logger = logging.getLogger("campusconnect")


def create_app(store: Store | None = None, chatbot_http: httpx.Client | None = None) -> FastAPI:
    """Build the app around ``store``; defaults to one on ``settings.database_url``.

    ``chatbot_http`` is the client used for assistant calls. One is opened (and closed on
    shutdown) when not given.
    """
    store = store or Store(settings.database_url)
    logger.setLevel(settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ensure_upload_dirs()
        store.create_all()
        owned_http = None
        if app.state.chatbot_http is None:
            owned_http = app.state.chatbot_http = httpx.Client(timeout=settings.chatbot_timeout)
        logger.info("CampusConnect API ready (%s)", store.url)
        yield
        if owned_http is not None:
            owned_http.close()
        store.dispose()

    app = FastAPI(title="CampusConnect API", version="1.0.0", lifespan=lifespan)
    app.state.store = store
    app.state.chatbot_http = chatbot_http
    app.state.limiter = get_limiter()

    add_security_middleware(app)

    app.include_router(auth.router, prefix="/auth")
    app.include_router(users.router, prefix="/users")
    app.include_router(connections.router, prefix="/connections")
    app.include_router(messages.router, prefix="/messages")
    app.include_router(workshops.router, prefix="/workshops")
    app.include_router(badges.router, prefix="/badges")
    app.include_router(posts.router, prefix="/posts")
    app.include_router(presence.router, prefix="/presence")
    app.include_router(chatbot.router, prefix="/chatbot")
    app.include_router(system.router, prefix="/system")
    app.mount(URL_PREFIX, StaticFiles(directory=settings.upload_dir_path, check_dir=False), name="uploads")

    return app


app = create_app()
