from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from pymongo import DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, PyMongoError

from k8s_demo_api.app.config import DEFAULT_AUTHOR, MESSAGES_COLLECTION, MESSAGES_LIMIT
from k8s_demo_shared.platform_manager import retry_with_backoff

SERVER_SELECTION_TIMEOUT_MS = 5000

STATE_IDLE = "idle"
STATE_CONNECTING = "connecting"
STATE_CONNECTED = "connected"
STATE_FAILED = "failed"
STATE_CLOSED = "closed"


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with milliseconds and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class MongoManager:
    """
    Owns the MongoDB client and the background connection attempts.

    Connecting runs in a daemon thread using bounded retries with capped
    exponential backoff. When the retries are exhausted the manager stays in the
    ``failed`` state; request handlers see no database and answer 503.

    Args:
        mongo_url (str): MongoDB connection string.
        db_name (str): Database holding the messages collection.
        client_factory: Callable building a client from a URL, ``MongoClient`` by default.
        max_retries (int): Connection retries after the first attempt.
        base_delay (float): Delay before the first retry in seconds.
        max_delay (float): Upper bound for the delay between retries.
        logger (logging.Logger | None): Logger for connection events.
    """

    def __init__(
        self,
        mongo_url: str,
        db_name: str,
        *,
        client_factory: Callable[..., Any] = MongoClient,
        max_retries: int = 10,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self.mongo_url = mongo_url
        self.db_name = db_name
        self._client_factory = client_factory
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._logger = logger or logging.getLogger("k8s-demo-api")

        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._client: Any = None
        self._db: Database[Any] | None = None
        self._state = STATE_IDLE
        self.attempts = 0

    @property
    def state(self) -> str:
        with self._lock:
            return self._state

    @property
    def database(self) -> Database[Any] | None:
        with self._lock:
            return self._db

    @property
    def is_connected(self) -> bool:
        return self.database is not None

    def connect_once(self) -> None:
        """
        Make a single connection attempt and ping the server.

        Raises:
            ConnectionFailure: If the server does not answer.
            ConfigurationError, ValueError: If the URL is not usable; these are not retried.
        """
        if self._stop.is_set():
            return

        with self._lock:
            self.attempts += 1
        client = self._client_factory(
            self.mongo_url, serverSelectionTimeoutMS=SERVER_SELECTION_TIMEOUT_MS
        )
        try:
            client.admin.command("ping")
        except PyMongoError:
            client.close()
            raise

        with self._lock:
            if self._stop.is_set():
                client.close()
                return
            self._client = client
            self._db = client[self.db_name]
            self._state = STATE_CONNECTED
        self._logger.info(f"Connected to MongoDB at {self.mongo_url}")

    def connect(self) -> bool:
        """
        Connect with bounded retries. Blocks until connected or the retries are exhausted.

        Returns:
            bool: True if a connection was established.
        """
        with self._lock:
            if self._state == STATE_CLOSED:
                return False
            self._state = STATE_CONNECTING

        try:
            retry_with_backoff(
                self.connect_once,
                max_retries=self._max_retries,
                base_delay=self._base_delay,
                max_delay=self._max_delay,
                sleep=self._stop.wait,
                logger=self._logger,
                retry_on=(ConnectionFailure,),
            )
        except (PyMongoError, ValueError) as e:
            with self._lock:
                if self._state != STATE_CLOSED:
                    self._state = STATE_FAILED
            self._logger.error(
                f"MongoDB connection failed after {self.attempts} attempt(s), giving up: {e}"
            )
            return False

        return self.is_connected

    def start_background_connect(self) -> threading.Thread:
        """Start connecting in a daemon thread unless already connected or connecting."""
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return self._thread
            self._thread = threading.Thread(
                target=self.connect, name="mongo-connect", daemon=True
            )
            self._thread.start()
            return self._thread

    def close(self) -> None:
        """Stop any pending retries and close the client. In-flight requests are not drained."""
        self._stop.set()
        with self._lock:
            client = self._client
            self._client = None
            self._db = None
            self._state = STATE_CLOSED
        if client is not None:
            client.close()
            self._logger.info("MongoDB connection closed")


def serialize_message(document: dict[str, Any]) -> dict[str, Any]:
    result = dict(document)
    if "_id" in result:
        result["_id"] = str(result["_id"])
    return result


def list_recent_messages(db: Database[Any], limit: int = MESSAGES_LIMIT) -> list[dict[str, Any]]:
    """Most recent messages first, at most ``limit``."""
    # ObjectIds grow with insertion order, breaking ties between equal timestamps
    order = [("timestamp", DESCENDING), ("_id", DESCENDING)]
    cursor = db[MESSAGES_COLLECTION].find({}).sort(order).limit(limit)
    return [serialize_message(document) for document in cursor]


def create_message(
    db: Database[Any], text: str, author: str | None, timestamp: str
) -> tuple[str, dict[str, Any]]:
    """
    Store a message.

    Returns:
        tuple[str, dict[str, Any]]: The inserted id and the stored document, ``_id`` as a string.
    """
    message = {
        "text": text,
        "author": author or DEFAULT_AUTHOR,
        "timestamp": timestamp,
    }
    # insert_one adds _id to the document it is given
    result = db[MESSAGES_COLLECTION].insert_one(message)
    return str(result.inserted_id), serialize_message(message)
