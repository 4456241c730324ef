"""
Table view.

Prints one column-aligned line per received sample:
time | kind | topic | payload
"""

import sys
from typing import TextIO

from topic_explorer.models.event import Event, decode_payload

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
ROW_FORMAT = "{:<25} | {:<10} | {:<30} | {}"
SEPARATOR_WIDTH = 100


def format_header() -> str:
    return ROW_FORMAT.format("Time", "Kind", "Topic", "Payload")


def format_separator() -> str:
    return "-" * SEPARATOR_WIDTH


def format_event(event: Event, timestamp_format: str = TIMESTAMP_FORMAT) -> str:
    """Format a single event as a table row."""
    return ROW_FORMAT.format(
        event.timestamp.strftime(timestamp_format),
        event.kind.value,
        event.topic,
        decode_payload(event.payload)
    )


class TablePrinter:
    """
    Event listener writing one table row per event.

    Register it on an IngestionCoordinator; rows are flushed immediately so
    the table stays live when stdout is piped.
    """

    def __init__(self, stream: TextIO = None, timestamp_format: str = TIMESTAMP_FORMAT):
        self.stream = stream if stream is not None else sys.stdout
        self.timestamp_format = timestamp_format
        self.rows_written = 0

    def write_header(self) -> None:
        print(format_header(), file=self.stream)
        print(format_separator(), file=self.stream)

    def __call__(self, event: Event) -> None:
        print(format_event(event, self.timestamp_format), file=self.stream, flush=True)
        self.rows_written += 1
