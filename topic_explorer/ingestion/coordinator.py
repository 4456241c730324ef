"""
Ingestion Coordinator.

Pulls events from an event source and applies them to the Topic Registry,
one synchronized insert per event.
"""

import logging
import threading
from typing import Callable, Iterable, List, Optional, Sequence

from topic_explorer.models.event import Event, decode_payload
from topic_explorer.registry.topic_registry import TopicRegistry

logger = logging.getLogger(__name__)

EventListener = Callable[[Event], None]


def split_topic(topic: str, delimiter: str = "/") -> List[str]:
    """
    Split a topic string into path segments.

    Empty segments are kept as-is: "" gives [""], "a//b" gives ["a", "", "b"].
    """
    return topic.split(delimiter)


class IngestionCoordinator:
    """
    Applies a sequential stream of events to a TopicRegistry.

    Single writer: events are applied strictly in arrival order, each one
    fully before the next. The registry lock is never held while waiting
    for the next event.
    """

    def __init__(
        self,
        registry: TopicRegistry,
        delimiter: str = "/",
        listeners: Sequence[EventListener] = ()
    ):
        """
        Initialize the coordinator.

        Args:
            registry: Registry receiving all writes
            delimiter: Topic path delimiter
            listeners: Callables notified after each event is applied
        """
        self.registry = registry
        self.delimiter = delimiter
        self.listeners = list(listeners)

        self.events_applied = 0
        self.error: Optional[BaseException] = None
        self._source = None
        self._thread: Optional[threading.Thread] = None

    def run(self, event_source: Iterable[Event]) -> int:
        """
        Consume event_source until it is exhausted.

        Args:
            event_source: Iterable of Event; iteration may block indefinitely

        Returns:
            Number of events applied during this run

        Raises:
            Whatever the event source or the registry raised; the error is
            also kept on self.error
        """
        self._source = event_source
        applied = 0
        logger.info("Ingestion started")

        try:
            for event in event_source:
                self.apply(event)
                applied += 1
        except Exception as e:
            self.error = e
            logger.error(f"Ingestion stopped after {applied} events: {e}")
            raise

        logger.info(f"Event source closed, ingestion finished ({applied} events)")
        return applied

    def apply(self, event: Event) -> None:
        """Insert a single event into the registry and notify listeners."""
        path = split_topic(event.topic, self.delimiter)
        payload = decode_payload(event.payload)

        self.registry.add_message(path, payload, event.timestamp)
        self.events_applied += 1

        for listener in self.listeners:
            listener(event)

    def start(self, event_source: Iterable[Event]) -> threading.Thread:
        """
        Run ingestion on a background daemon thread.

        Args:
            event_source: Iterable of Event

        Returns:
            The started thread
        """
        if self.is_running:
            raise ValueError("Ingestion is already running")

        self.error = None
        self._source = event_source
        self._thread = threading.Thread(
            target=self._run_in_background,
            args=(event_source,),
            name="topic-ingestion",
            daemon=True
        )
        self._thread.start()
        return self._thread

    def stop(self) -> None:
        """
        Stop ingestion by closing the event source.

        Cancellation is cooperative: the loop ends when the source reports
        exhaustion. Sources without close() can only be stopped by their owner.
        """
        close = getattr(self._source, "close", None)
        if close is not None:
            logger.info("Closing event source")
            close()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run_in_background(self, event_source: Iterable[Event]) -> None:
        try:
            self.run(event_source)
        except Exception:
            # Already logged and stored on self.error by run()
            pass
