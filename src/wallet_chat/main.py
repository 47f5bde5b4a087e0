"""Main entry point for the Wallet Chat application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from wallet_chat.api.v1 import (
    auth_router,
    chat_rooms_router,
    contacts_router,
    me_router,
    profile_router,
)
from wallet_chat.core.errors import ChatError, ServerError
from wallet_chat.core.logging import configure_logging
from wallet_chat.core.settings import settings
from wallet_chat.db.session import create_tables
from wallet_chat.realtime.connections import ConnectionManager
from wallet_chat.realtime.gateway import router as realtime_router
from wallet_chat.services.nonce import build_nonce_registry

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Wallet Chat API",
    description="Wallet-authenticated chat with delivery and read receipts",
    version=settings.app_version,
)

app.state.nonce_registry = build_nonce_registry(settings)
app.state.connections = ConnectionManager()

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api")
app.include_router(me_router, prefix="/api")
app.include_router(profile_router, prefix="/api")
app.include_router(contacts_router, prefix="/api")
app.include_router(chat_rooms_router, prefix="/api")
app.include_router(realtime_router)


@app.exception_handler(ChatError)
async def chat_error_handler(request: Request, exc: ChatError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("store failure on %s %s", request.method, request.url.path)
    error = ServerError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging(settings.log_level)
    if settings.effective_database_url.startswith("sqlite"):
        create_tables()
    logger.info("%s %s started", settings.app_name, settings.app_version)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("wallet_chat.main:app", host="0.0.0.0", port=4000, reload=settings.debug)
