"""
Logging infrastructure for studiolink.

Provides:
- Structured JSON logging for file output
- Rich console output for terminal
- Contextual logging with family/run/item context
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

import orjson
from rich.markup import escape

if TYPE_CHECKING:
    from rich.console import Console


# Record attributes copied into JSON lines and used as console prefixes
CONTEXT_FIELDS = ("family", "run_id", "item_index")


def json_dumps(obj: Any) -> str:
    return orjson.dumps(obj, default=str).decode("utf-8")


# =============================================================================
# JSON Formatter for File Logging
# =============================================================================


class JSONFormatter(logging.Formatter):
    """Format log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key in CONTEXT_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        return json_dumps(log_data)


# =============================================================================
# Rich Console Handler
# =============================================================================


class RichConsoleHandler(logging.Handler):
    """Handler that outputs to Rich console with formatting."""

    def __init__(self, console: "Console | None" = None, level: int = logging.INFO):
        super().__init__(level)
        if console is None:
            from rich.console import Console
            console = Console(stderr=True)
        self.console = console

    def emit(self, record: logging.LogRecord) -> None:
        try:
            # Remote error text may contain square brackets
            message = escape(self.format(record))

            style = {
                logging.DEBUG: "dim",
                logging.INFO: "default",
                logging.WARNING: "yellow",
                logging.ERROR: "red",
                logging.CRITICAL: "bold red",
            }.get(record.levelno, "default")

            # [scrape:r-123] style prefix
            prefix = ""
            family = getattr(record, "family", None)
            if family:
                run_id = getattr(record, "run_id", None)
                tag = f"{family}:{run_id}" if run_id else family
                prefix = f"[cyan]\\[{tag}][/cyan] "

            self.console.print(f"{prefix}[{style}]{message}[/{style}]", highlight=False)

            if record.exc_info:
                self.console.print_exception()

        except Exception:
            self.handleError(record)


# =============================================================================
# Logger Configuration
# =============================================================================


def setup_logging(
    level: str = "INFO",
    log_file: Path | str | None = None,
    json_format: bool = True,
    rich_console: bool = True,
) -> logging.Logger:
    """Set up logging for studiolink.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Path to log file (optional)
        json_format: Use JSON format for file logs
        rich_console: Use Rich for console output

    Returns:
        Root logger for studiolink
    """
    logger = logging.getLogger("studiolink")
    logger.setLevel(getattr(logging, level.upper()))

    logger.handlers.clear()

    if rich_console:
        console_handler: logging.Handler = RichConsoleHandler()
        console_handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
    console_handler.setLevel(getattr(logging, level.upper()))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)  # Capture all levels to file

        if json_format:
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )

        logger.addHandler(file_handler)

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (will be prefixed with 'studiolink.')

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f"studiolink.{name}")
    return logging.getLogger("studiolink")


# =============================================================================
# Contextual Logging Adapter
# =============================================================================


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter that adds run context to log records."""

    def __init__(
        self,
        logger: logging.Logger,
        family: str | None = None,
        run_id: str | None = None,
        item_index: int | None = None,
    ):
        super().__init__(logger, {})
        self.family = family
        self.run_id = run_id
        self.item_index = item_index

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = kwargs.get("extra", {})

        if self.family:
            extra["family"] = self.family
        if self.run_id:
            extra["run_id"] = self.run_id
        if self.item_index is not None:
            extra["item_index"] = self.item_index

        kwargs["extra"] = extra
        return msg, kwargs

    def with_context(
        self,
        family: str | None = None,
        run_id: str | None = None,
        item_index: int | None = None,
    ) -> "ContextualLogger":
        """Create a new logger with additional context."""
        return ContextualLogger(
            self.logger,
            family=family or self.family,
            run_id=run_id or self.run_id,
            item_index=item_index if item_index is not None else self.item_index,
        )


def get_contextual_logger(
    name: str | None = None,
    family: str | None = None,
    run_id: str | None = None,
    item_index: int | None = None,
) -> ContextualLogger:
    """Get a contextual logger with family/run context.

    Args:
        name: Logger name
        family: Operation family for context
        run_id: Remote run identifier for context
        item_index: Batch item index for context

    Returns:
        ContextualLogger instance
    """
    base_logger = get_logger(name)
    return ContextualLogger(base_logger, family=family, run_id=run_id, item_index=item_index)
