"""
Topic Explorer - live view of every topic on a Zenoh network

CLI entry point.
"""

import argparse
import logging
import sys
import time

from topic_explorer.ingestion.coordinator import IngestionCoordinator
from topic_explorer.ingestion.sources import ConfigurationError, TransportError, ZenohEventSource
from topic_explorer.registry.topic_registry import RegistryPoisonedError, TopicRegistry
from topic_explorer.views.report import export_summary
from topic_explorer.views.table_view import TablePrinter
from topic_explorer.views.tree_view import render_registry
import config.settings as settings

logger = logging.getLogger(__name__)

CLEAR_SCREEN = "\033[2J\033[H"


def setup_logging(log_level: str = "WARNING", log_to_stderr: bool = False):
    """
    Configure logging for the entire application.

    Records go to the log file; stderr is reserved for one-line fatal
    diagnostics unless log_to_stderr is set.
    """
    handlers = [logging.FileHandler(settings.LOG_FILE)]
    if log_to_stderr:
        handlers.append(logging.StreamHandler(sys.stderr))

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=settings.LOG_FORMAT,
        handlers=handlers,
        force=True
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Topic Explorer - live hierarchical view of Zenoh topics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Explore all topics with the default Zenoh configuration
  python main.py

  # Use a Zenoh config file and print a live table instead of the tree
  python main.py zenoh.json5 --mode table

  # Redraw every 5 seconds and export a CSV summary on exit
  python main.py --interval 5 --export output/topics.csv
        """
    )

    parser.add_argument(
        "config",
        nargs="?",
        default=settings.ZENOH_CONFIG_PATH,
        help="Zenoh configuration file (default: Zenoh built-in configuration)"
    )

    parser.add_argument(
        "--mode",
        choices=["explorer", "table"],
        default=settings.DEFAULT_MODE,
        help=f"Presentation mode (default: {settings.DEFAULT_MODE})"
    )

    parser.add_argument(
        "--key-expr",
        default=settings.KEY_EXPR,
        help=f"Key expression to subscribe to (default: {settings.KEY_EXPR})"
    )

    parser.add_argument(
        "--interval",
        type=float,
        default=settings.REFRESH_INTERVAL_SECONDS,
        help=f"Explorer refresh interval in seconds (default: {settings.REFRESH_INTERVAL_SECONDS})"
    )

    parser.add_argument(
        "--export",
        help="Write a CSV summary of the topic tree to this path on exit"
    )

    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging level (default: {settings.LOG_LEVEL})"
    )

    parser.add_argument(
        "--log-stderr",
        action="store_true",
        default=settings.LOG_TO_STDERR,
        help=f"Also write log records to stderr (default: only {settings.LOG_FILE})"
    )

    return parser


def open_source(config_path, key_expr: str) -> ZenohEventSource:
    """
    Open the Zenoh subscription, exiting the process on failure.

    Startup errors are fatal: one line on stderr, exit status 1, no retry.
    """
    source = ZenohEventSource(
        config_path=config_path,
        key_expr=key_expr,
        log_level=settings.ZENOH_LOG_LEVEL
    )
    try:
        return source.open()
    except (ConfigurationError, TransportError) as e:
        logger.error(f"Startup failed: {e}")
        print(e, file=sys.stderr)
        sys.exit(1)


def run_table(source, registry: TopicRegistry, stream=None) -> IngestionCoordinator:
    """Print one line per event until the source closes or Ctrl-C."""
    printer = TablePrinter(stream, timestamp_format=settings.TABLE_TIME_FORMAT)
    coordinator = IngestionCoordinator(
        registry,
        delimiter=settings.TOPIC_DELIMITER,
        listeners=[printer]
    )

    printer.write_header()
    try:
        coordinator.run(source)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        coordinator.stop()
    except Exception:
        # Logged and kept on coordinator.error
        pass

    return coordinator


def run_explorer(
    source,
    registry: TopicRegistry,
    interval: float,
    stream=None,
    clear: bool = True
) -> IngestionCoordinator:
    """Ingest in the background and redraw the tree every interval seconds."""
    stream = stream if stream is not None else sys.stdout
    coordinator = IngestionCoordinator(registry, delimiter=settings.TOPIC_DELIMITER)
    coordinator.start(source)

    def draw() -> bool:
        try:
            frame = render_registry(registry, settings.MESSAGE_TIME_FORMAT)
        except RegistryPoisonedError as e:
            logger.error(f"Cannot render topic tree: {e}")
            return False
        print((CLEAR_SCREEN if clear else "") + frame, file=stream, flush=True)
        return True

    try:
        while coordinator.is_running:
            if not draw():
                break
            time.sleep(interval)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        coordinator.stop()

    coordinator.join(timeout=settings.SHUTDOWN_TIMEOUT_SECONDS)
    if coordinator.error is None:
        draw()
    return coordinator


def main():
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if args.interval <= 0:
        parser.error("--interval must be positive")

    setup_logging(args.log_level, args.log_stderr)

    registry = TopicRegistry(root_name=settings.TREE_ROOT_NAME)

    if args.mode == "table":
        print("Opening Zenoh session...")
        source = open_source(args.config, args.key_expr)
        print(f"Subscribed to {args.key_expr}")
        print("Listening for messages (CTRL-C to quit)...\n")
        try:
            coordinator = run_table(source, registry)
        finally:
            source.close()
    else:
        source = open_source(args.config, args.key_expr)
        try:
            coordinator = run_explorer(source, registry, args.interval)
        finally:
            source.close()

    # A failed ingestion may have poisoned the registry: no export then
    if coordinator.error is not None:
        print(f"Ingestion failed: {coordinator.error}", file=sys.stderr)
        sys.exit(1)

    if args.export:
        export_summary(registry, args.export, settings.TOPIC_DELIMITER)
        print(f"Topic summary: {args.export}")

    logger.info(f"Topic Explorer finished ({coordinator.events_applied} events)")
    sys.exit(0)


if __name__ == "__main__":
    main()
