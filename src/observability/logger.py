"""
Structured JSON logging for the work-item ingestion pipeline

One application logger ("workitem-ingest") owns the stdout handler; module
loggers are its children and propagate to it, so LOG_LEVEL and LOG_FORMAT
apply everywhere at once. Entries are rendered with python-json-logger.
"""
import logging
import os
import sys
import time

from pythonjsonlogger import jsonlogger

DEFAULT_LOGGER_NAME = "workitem-ingest"

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

JSON_FIELDS = "%(timestamp)s %(level)s %(logger)s %(module)s %(function)s %(message)s"
TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(message)s"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    Stamps every entry with timestamp, level, logger, module, function,
    process and thread.

    The thread name matters here: chunk writes run on pool threads named
    ``chunk-writer_N``.
    """

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = self.formatTime(record, self.datefmt)
        level = log_record.get("level")
        log_record["level"] = level.upper() if level else record.levelname
        log_record["logger"] = record.name
        log_record["module"] = record.module
        log_record["function"] = record.funcName
        log_record["process_id"] = record.process
        log_record["thread"] = record.threadName


def setup_logger(
    name: str = DEFAULT_LOGGER_NAME,
    level: str | None = None,
    format_type: str | None = None,
) -> logging.Logger:
    """
    Attach a single stdout handler to ``name`` (replacing any previous one)

    Args:
        name: Logger name
        level: Log level (defaults to env var LOG_LEVEL, then INFO)
        format_type: "json" or "text" (defaults to env var LOG_FORMAT, then json)

    Returns:
        Configured logger instance
    """
    log_level = LOG_LEVELS.get((level or os.getenv("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    format_type = (format_type or os.getenv("LOG_FORMAT", "json")).lower()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    if format_type == "json":
        handler.setFormatter(CustomJsonFormatter(fmt=JSON_FIELDS, datefmt="%Y-%m-%dT%H:%M:%S"))
    else:
        handler.setFormatter(logging.Formatter(fmt=TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Logger for a module, e.g. ``get_logger(__name__)``

    The application logger is configured on first use; ``src.batch.pipeline``
    becomes ``workitem-ingest.src.batch.pipeline``.
    """
    root = logging.getLogger(DEFAULT_LOGGER_NAME)
    if not root.handlers:
        setup_logger(DEFAULT_LOGGER_NAME)

    if not name or name == DEFAULT_LOGGER_NAME:
        return root
    return root.getChild(name)


class log_operation:
    """
    Context manager logging start, completion or failure of an operation

    Usage:
        with log_operation("ingest_file", logger=logger, file="tickets.csv") as op:
            ...
            duration = op.elapsed
    """

    def __init__(self, operation_name: str, logger: logging.Logger | None = None, **extra_fields):
        """
        Args:
            operation_name: Name of the operation
            logger: Logger instance (application logger if None)
            **extra_fields: Fields added to every entry of this operation
        """
        self.operation_name = operation_name
        self.logger = logger or get_logger()
        self.extra_fields = extra_fields
        self.start_time: float | None = None

    @property
    def elapsed(self) -> float:
        """Seconds since the operation started."""
        if self.start_time is None:
            return 0.0
        return time.monotonic() - self.start_time

    def __enter__(self):
        self.start_time = time.monotonic()
        self.logger.info(
            f"Starting: {self.operation_name}",
            extra={"operation": self.operation_name, **self.extra_fields}
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        fields = {
            "operation": self.operation_name,
            "duration_seconds": round(self.elapsed, 3),
            **self.extra_fields,
        }
        if exc_type is None:
            self.logger.info(f"Completed: {self.operation_name}", extra={**fields, "status": "success"})
        else:
            self.logger.error(
                f"Failed: {self.operation_name}",
                extra={
                    **fields,
                    "status": "error",
                    "error_type": exc_type.__name__,
                    "error_message": str(exc_val),
                },
            )
        return False
