# Demo REST API backed by MongoDB.
# Run with: uvicorn k8s_demo_api.fast_api_server:app --reload --port 3000
import json
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from k8s_demo_api.app.config import API_VERSION, ApiSettings, get_settings
from k8s_demo_api.services.mongo_service import (
    STATE_FAILED,
    MongoManager,
    create_message,
    list_recent_messages,
    utc_timestamp,
)
from k8s_demo_shared.platform_manager import create_logger


class InvalidBodyError(ValueError):
    pass


async def _read_json(request: Request) -> Any:
    """Parse the request body as JSON. An empty body is treated as ``{}``."""
    body = await request.body()
    if not body.strip():
        return {}
    try:
        return json.loads(body)
    except ValueError as e:
        raise InvalidBodyError(f"Invalid JSON body: {e}") from e


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(content={"error": message}, status_code=status_code)


def build_mongo_manager(settings: ApiSettings, logger: logging.Logger) -> MongoManager:
    return MongoManager(
        settings.mongo_url,
        settings.db_name,
        max_retries=settings.mongo_connect_max_retries,
        base_delay=settings.mongo_connect_base_delay,
        max_delay=settings.mongo_connect_max_delay,
        logger=logger,
    )


def create_app(
    settings: ApiSettings | None = None,
    mongo: MongoManager | None = None,
    clock: Callable[[], str] = utc_timestamp,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: API settings; loaded from the environment when omitted.
        mongo: Database manager; built from ``settings`` when omitted.
        clock: Source of ISO-8601 timestamps for responses and stored messages.
    """
    settings = settings or get_settings()
    logger = create_logger(logger_name="k8s-demo-api", log_level=settings.log_level)
    mongo = mongo or build_mongo_manager(settings, logger)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(f"API server running on port: {settings.port}")
        if not mongo.is_connected:
            mongo.start_background_connect()
        yield
        logger.info("Shutdown received, closing server...")
        mongo.close()

    app = FastAPI(title="K8s API Demo", version=API_VERSION, lifespan=lifespan)
    app.state.mongo = mongo

    @app.get("/")
    def root() -> dict[str, Any]:
        return {
            "message": "Welcome to K8s API Demo",
            "version": API_VERSION,
            "endpoints": {
                "health": "GET /health",
                "echo": "POST /echo",
                "messages": "GET /messages",
                "createMessage": "POST /messages",
            },
        }

    @app.get("/health")
    def health() -> JSONResponse:
        # Once reconnecting has given up the pod is unhealthy so the liveness probe restarts it
        state = mongo.state
        failed = state == STATE_FAILED
        return JSONResponse(
            content={
                "status": "unhealthy" if failed else "healthy",
                "timestamp": clock(),
                "mongodb": "connected" if mongo.is_connected else "disconnected",
                "mongodb_state": state,
            },
            status_code=503 if failed else 200,
        )

    @app.post("/echo")
    async def echo(request: Request) -> JSONResponse:
        try:
            received = await _read_json(request)
        except InvalidBodyError as e:
            return _error(400, str(e))
        return JSONResponse(
            content={"message": "Echo response", "received": received, "timestamp": clock()}
        )

    @app.get("/messages")
    def get_messages() -> JSONResponse:
        db = mongo.database
        if db is None:
            return _error(503, "Database not connected")

        try:
            messages = list_recent_messages(db)
        except PyMongoError as e:
            logger.error(f"Error fetching messages: {e}")
            return _error(500, "Failed to fetch messages")

        return JSONResponse(content={"count": len(messages), "messages": messages})

    @app.post("/messages")
    async def post_message(request: Request) -> JSONResponse:
        db = mongo.database
        if db is None:
            return _error(503, "Database not connected")

        try:
            payload = await _read_json(request)
        except InvalidBodyError as e:
            return _error(400, str(e))

        if not isinstance(payload, dict) or not payload.get("text"):
            return _error(400, "Message text is required")

        try:
            # pymongo blocks, keep it off the event loop
            message_id, message = await run_in_threadpool(
                create_message, db, payload["text"], payload.get("author"), clock()
            )
        except PyMongoError as e:
            logger.error(f"Error creating message: {e}")
            return _error(500, "Failed to create message")

        logger.info(f"Message {message_id} created by {message['author']}")
        return JSONResponse(
            content={"message": "Message created", "id": message_id, "data": message},
            status_code=201,
        )

    return app


app: FastAPI = create_app()
