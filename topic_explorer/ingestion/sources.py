"""
Event sources.

An event source is any iterable of Event that blocks while waiting for the
next sample and stops iterating once it is closed.
"""

import logging
import queue
from datetime import datetime
from typing import Iterator, Optional

import zenoh

from topic_explorer.models.event import Event, EventKind, decode_payload

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """The transport configuration resource could not be loaded."""

    def __init__(self, path: str, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to load config '{path}': {cause}")


class TransportError(Exception):
    """The transport could not be opened or the subscription was rejected."""


class QueueEventSource:
    """
    In-process event source backed by a thread-safe queue.

    Producers call publish()/put() from any thread; close() ends iteration
    once the events already queued have been consumed.
    """

    _CLOSED = object()

    def __init__(self, maxsize: int = 0):
        self._queue: "queue.Queue" = queue.Queue(maxsize)
        self.closed = False

    def publish(self, topic: str, payload, kind: EventKind = EventKind.PUT) -> Event:
        """Build an Event stamped with the current time and enqueue it."""
        event = Event(topic=topic, payload=payload, kind=kind)
        self.put(event)
        return event

    def put(self, event: Event) -> None:
        if self.closed:
            raise ValueError("Event source is closed")
        self._queue.put(event)

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._queue.put(self._CLOSED)

    def __iter__(self) -> Iterator[Event]:
        while True:
            item = self._queue.get()
            if item is self._CLOSED:
                return
            yield item


class ZenohEventSource:
    """
    Subscribes to a Zenoh key expression and yields every sample as an Event.

    Usage:
        with ZenohEventSource(config_path, "**") as source:
            coordinator.run(source)
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        key_expr: str = "**",
        log_level: str = "error"
    ):
        """
        Args:
            config_path: Zenoh JSON5 configuration file; None uses the defaults
            key_expr: Key expression to subscribe to
            log_level: Fallback level for Zenoh's own logging (RUST_LOG wins)
        """
        self.config_path = config_path
        self.key_expr = key_expr
        self.log_level = log_level

        self._session = None
        self._subscriber = None

    def load_config(self) -> "zenoh.Config":
        """
        Load the Zenoh configuration.

        Raises:
            ConfigurationError: If the file is unreadable or malformed
        """
        if self.config_path is None:
            return zenoh.Config()

        try:
            config = zenoh.Config.from_file(self.config_path)
        except Exception as e:
            raise ConfigurationError(self.config_path, e) from e

        logger.info(f"Loaded Zenoh config from {self.config_path}")
        return config

    def open(self) -> "ZenohEventSource":
        """
        Open the session and declare the subscriber.

        Raises:
            ConfigurationError: Config file can't be loaded
            TransportError: Session can't be opened or subscription rejected
        """
        config = self.load_config()
        zenoh.init_log_from_env_or(self.log_level)

        try:
            self._session = zenoh.open(config)
        except Exception as e:
            raise TransportError(f"Failed to open Zenoh session: {e}") from e

        try:
            self._subscriber = self._session.declare_subscriber(self.key_expr)
        except Exception as e:
            self._session.close()
            self._session = None
            raise TransportError(f"Failed to subscribe to topics: {e}") from e

        logger.info(f"Subscribed to '{self.key_expr}'")
        return self

    def close(self) -> None:
        """Undeclare the subscriber and close the session; ends iteration."""
        if self._subscriber is not None:
            self._subscriber.undeclare()
            self._subscriber = None
        if self._session is not None:
            self._session.close()
            self._session = None
            logger.info("Zenoh session closed")

    def __enter__(self) -> "ZenohEventSource":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[Event]:
        if self._subscriber is None:
            raise TransportError("Event source is not open")

        for sample in self._subscriber:
            yield sample_to_event(sample)


def sample_to_event(sample) -> Event:
    """Convert a zenoh.Sample into an Event stamped with the local arrival time."""
    if sample.kind == zenoh.SampleKind.PUT:
        kind = EventKind.PUT
    elif sample.kind == zenoh.SampleKind.DELETE:
        kind = EventKind.DEL
    else:
        kind = EventKind.OTHER

    return Event(
        topic=str(sample.key_expr),
        payload=decode_payload(sample.payload.to_bytes()),
        kind=kind,
        timestamp=datetime.now().astimezone()
    )
