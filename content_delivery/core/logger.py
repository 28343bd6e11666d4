"""
Logging configuration for content-delivery-sync.

This module sets up the logging system with multiple outputs:
    - Console: Real-time progress with tqdm-compatible formatting
    - sync_full.log: Complete log of all events (DEBUG and above)
    - sync_errors.log: Only ERROR and CRITICAL level messages
    - orphan_links.log: Links whose target never arrived during a sync

The library itself only emits records through get_logger(); handlers are
installed by the command line entry point via setup_logging().

Log File Locations:
    All log files are created in <storage directory>/logs with a timestamp
    suffix, so each run gets its own set of files.

Usage:
    from content_delivery.core.logger import setup_logging, get_logger

    setup_logging(storage_dir)  # Call once at startup
    logger = get_logger(__name__)  # Get logger for each module

    logger.info("Fetching sync page")
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


# Log file name prefixes (created in <directory>/logs)
LOG_FULL_PREFIX = "sync_full"
LOG_ERRORS_PREFIX = "sync_errors"
ORPHAN_LINKS_PREFIX = "orphan_links"

# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Formatter that prefixes each console line with a colored level name.

    Colors:
        - DEBUG: Blue
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bold Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        return f"{color}{record.levelname}{Colors.RESET}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """
    Console handler that does not break progress bars.

    Progress output redraws its line in place with carriage returns. A plain
    StreamHandler writing to the same stream leaves half-drawn bars behind;
    tqdm.write() clears the bar, prints the message and redraws it.

    Attributes:
        stream: The output stream (defaults to sys.stderr).
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        super().__init__()
        # Resolved per handler: sys.stderr may be redirected after import
        self.stream = stream if stream is not None else sys.stderr

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream)
        except Exception:
            self.handleError(record)


class OrphanLinkHandler(logging.Handler):
    """
    Handler that collects orphan links into a dedicated report file.

    An orphan link is a reference whose target was not part of any page
    processed so far. This is not an error, but it is usually worth a
    look (unpublished target, deleted asset, wrong sync filter).

    Report format, one block per link:

        entry cat-1 field 'image' (en-US)
        -> Asset img-1

    The handler only reacts to records carrying the extra fields written
    by log_orphan_link():
        - 'orphan_source_id': id of the entry holding the link
        - 'orphan_field': field name
        - 'orphan_locale': locale code of the field value
        - 'orphan_target_id': id the link points to
        - 'orphan_target_type': 'Entry' or 'Asset'

    Attributes:
        report_path: Path of the report file.
        report_file: Open file handle, None until open() is called.
    """

    def __init__(self, report_path: Path) -> None:
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None

    def open(self) -> None:
        """Open the report file in write mode. Called by setup_logging()."""
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        if not hasattr(record, "orphan_source_id"):
            return

        if self.report_file is None:
            return

        try:
            source_id = getattr(record, "orphan_source_id", "?")
            field = getattr(record, "orphan_field", "?")
            locale = getattr(record, "orphan_locale", "?")
            target_id = getattr(record, "orphan_target_id", "?")
            target_type = getattr(record, "orphan_target_type", "?")

            self.report_file.write(f"entry {source_id} field '{field}' ({locale})\n")
            self.report_file.write(f"-> {target_type} {target_id}\n\n")
            self.report_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """Close the report file handle. Safe to call multiple times."""
        if self.report_file is not None:
            try:
                self.report_file.close()
            except OSError:
                pass
            self.report_file = None
        super().close()


class ErrorOnlyFilter(logging.Filter):
    """
    Filter that only allows ERROR and CRITICAL level records.

    Used by the error log file handler to exclude DEBUG, INFO, and WARNING.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(output_dir: Path, verbose: bool = False) -> Path:
    """
    Configure the logging system for the command line application.

    Should be called ONCE at startup, after the configuration is loaded
    and before any sync work begins.

    Args:
        output_dir: Directory under which a 'logs' subdirectory is created.
        verbose: Show DEBUG records on the console (files always get DEBUG).

    Returns:
        Path of the logs directory.

    Behavior:
        1. Create output_dir/logs if it doesn't exist
        2. Generate a timestamp for this run's log files
        3. Reset the root logger and set it to DEBUG
        4. Console handler (TqdmLoggingHandler), INFO or DEBUG, colored
        5. Full log file handler, DEBUG, timestamped format
        6. Error log file handler, filtered to ERROR+ by ErrorOnlyFilter
        7. Orphan link report handler

    Thread Safety:
        This function is NOT thread-safe. Call it from the main thread
        before the event loop starts.
    """
    logs_dir = output_dir / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter())
    root_logger.addHandler(console_handler)

    file_formatter = logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT)

    full_handler = logging.FileHandler(
        logs_dir / f"{LOG_FULL_PREFIX}_{timestamp}.log", mode="w", encoding="utf-8"
    )
    full_handler.setLevel(logging.DEBUG)
    full_handler.setFormatter(file_formatter)
    root_logger.addHandler(full_handler)

    error_handler = logging.FileHandler(
        logs_dir / f"{LOG_ERRORS_PREFIX}_{timestamp}.log", mode="w", encoding="utf-8"
    )
    error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
    error_handler.setFormatter(file_formatter)
    error_handler.addFilter(ErrorOnlyFilter())
    root_logger.addHandler(error_handler)

    orphan_handler = OrphanLinkHandler(logs_dir / f"{ORPHAN_LINKS_PREFIX}_{timestamp}.log")
    orphan_handler.open()
    root_logger.addHandler(orphan_handler)

    # aiohttp is chatty at DEBUG; keep its records out of the console
    logging.getLogger("aiohttp").setLevel(logging.WARNING)

    return logs_dir


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.
              This creates a hierarchy like 'content_delivery.sync.coordinator'.

    Returns:
        logging.Logger: A logger instance configured by setup_logging().

    Note:
        Loggers obtained before setup_logging() is called have no handlers
        of their own and only propagate to whatever the host application
        configured.
    """
    return logging.getLogger(name)


def log_orphan_link(
    logger: logging.Logger,
    source_id: str,
    field: str,
    locale: str,
    target_id: str,
    target_type: str
) -> None:
    """
    Log a link whose target is not in the synchronized state.

    Logs a WARNING and attaches the extra fields OrphanLinkHandler uses
    to write orphan_links.log.

    Example:
        log_orphan_link(
            logger,
            source_id="cat-1",
            field="image",
            locale="en-US",
            target_id="img-1",
            target_type="Asset"
        )
    """
    logger.warning(
        f"Orphan link: {source_id}.{field} ({locale}) -> {target_type} {target_id}",
        extra={
            "orphan_source_id": source_id,
            "orphan_field": field,
            "orphan_locale": locale,
            "orphan_target_id": target_id,
            "orphan_target_type": target_type,
        }
    )


def shutdown_logging() -> None:
    """
    Flush and close every handler on the root logger, then remove them.

    Typically called in a finally block of the CLI command.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        try:
            handler.flush()
            handler.close()
        except OSError:
            pass
        root_logger.removeHandler(handler)
