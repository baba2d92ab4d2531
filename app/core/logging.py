"""
Centralized logging configuration.

Every record is written twice: once as structured JSON (for tooling) and once
as a human-readable line (for developers). Request ID and operation name are
carried in context variables so that nested calls share them.
"""

import json
import logging
import logging.handlers
import uuid
from datetime import datetime, timezone
from pathlib import Path
from contextvars import ContextVar
from typing import Optional, Dict, Any
import traceback
import functools

# Context variable to store request ID for the current request
_request_id: ContextVar[Optional[str]] = ContextVar('request_id', default=None)

# Context variable to store operation name
_operation: ContextVar[Optional[str]] = ContextVar('operation', default=None)

# Longest context value printed by the human-readable formatter
_MAX_VALUE_LENGTH = 500


def _base_fields(record: logging.LogRecord) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    request_id = _request_id.get()
    if request_id:
        fields["request_id"] = request_id
    operation = _operation.get()
    if operation:
        fields["operation"] = operation
    event = getattr(record, 'event', None)
    if event:
        fields["event"] = event
    return fields


class StructuredJSONFormatter(logging.Formatter):
    """Formatter that outputs one JSON document per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
        }
        log_data.update(_base_fields(record))
        log_data["message"] = record.getMessage()

        context = getattr(record, 'context', None)
        if context:
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info)
            }

        return json.dumps(log_data, ensure_ascii=False, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Formatter that outputs an indented, multi-line text block per record."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        log_lines = [
            f"{timestamp} {record.levelname:8s} [{record.name}] {record.funcName}() - {record.getMessage()}"
        ]

        for key, value in _base_fields(record).items():
            log_lines.append(f"  {key}: {value}")

        context = getattr(record, 'context', None)
        if isinstance(context, dict):
            for key, value in context.items():
                if isinstance(value, (dict, list)):
                    value_str = json.dumps(value, indent=2, ensure_ascii=False, default=str)
                    log_lines.append(f"  {key}:")
                    log_lines.extend('    ' + line for line in value_str.split('\n'))
                else:
                    value_str = str(value)
                    if len(value_str) > _MAX_VALUE_LENGTH:
                        value_str = value_str[:_MAX_VALUE_LENGTH] + "... (truncated)"
                    log_lines.append(f"  {key}: {value_str}")
        elif context:
            log_lines.append(f"  context: {context}")

        if record.exc_info:
            exc_type, exc_value, exc_traceback = record.exc_info
            log_lines.append(f"  exception_type: {exc_type.__name__ if exc_type else 'Unknown'}")
            log_lines.append(f"  exception_message: {str(exc_value) if exc_value else 'N/A'}")
            if exc_traceback:
                log_lines.append("  traceback:")
                for tb_line in traceback.format_exception(exc_type, exc_value, exc_traceback):
                    for line in tb_line.rstrip().split('\n'):
                        log_lines.append(f"    {line}")

        return '\n'.join(log_lines)


def setup_logging(log_level: str = "INFO", log_dir: Optional[Path] = None, console: bool = False) -> None:
    """
    Initialize the logging system.

    Writes ``thumbnails.log.json`` (structured) and ``thumbnails.log``
    (human-readable) into ``log_dir``, rotated at midnight.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files. Defaults to ./logs
        console: Also echo human-readable records to stderr
    """
    log_dir = Path(log_dir) if log_dir is not None else Path("logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    level = getattr(logging, log_level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    json_log_file = log_dir / "thumbnails.log.json"
    text_log_file = log_dir / "thumbnails.log"

    for filename, formatter in (
        (json_log_file, StructuredJSONFormatter()),
        (text_log_file, HumanReadableFormatter()),
    ):
        handler = logging.handlers.TimedRotatingFileHandler(
            filename=str(filename),
            when='midnight',
            interval=1,
            backupCount=30,  # Keep 30 days of logs
            encoding='utf-8'
        )
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    if console:
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(level)
        stream_handler.setFormatter(HumanReadableFormatter())
        root_logger.addHandler(stream_handler)

    log_event(
        level="INFO",
        logger="app.core.logging",
        function="setup_logging",
        operation="logging_setup",
        event="logging_initialized",
        message="Logging system initialized",
        context={
            "log_level": log_level,
            "log_dir": str(log_dir),
            "json_log_file": str(json_log_file),
            "text_log_file": str(text_log_file)
        }
    )


def get_request_id() -> Optional[str]:
    """Get the current request ID from context."""
    return _request_id.get()


def set_request_id(request_id: str) -> None:
    """Set the request ID in context."""
    _request_id.set(request_id)


def generate_request_id() -> str:
    """Generate a unique request ID."""
    return f"req_{uuid.uuid4().hex[:12]}"


def set_operation(operation: Optional[str]) -> None:
    """Set the current operation name in context."""
    _operation.set(operation)


def get_operation() -> Optional[str]:
    """Get the current operation name from context."""
    return _operation.get()


def log_event(
    level: str,
    logger: str,
    function: str,
    operation: Optional[str] = None,
    event: Optional[str] = None,
    message: str = "",
    context: Optional[Dict[str, Any]] = None,
    exc_info: Optional[BaseException] = None
) -> None:
    """
    Log a structured event.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        logger: Logger name (usually module path)
        function: Function name where log originated
        operation: High-level operation name
        event: Specific event type
        message: Human-readable message
        context: Operation-specific data
        exc_info: Exception info to include
    """
    logger_instance = logging.getLogger(logger)
    log_method = getattr(logger_instance, level.lower(), logger_instance.info)

    extra: Dict[str, Any] = {}
    if event:
        extra['event'] = event
    if context:
        extra['context'] = context

    if operation:
        token = _operation.set(operation)
        try:
            log_method(message, extra=extra, exc_info=exc_info)
        finally:
            _operation.reset(token)
    else:
        log_method(message, extra=extra, exc_info=exc_info)


def log_operation_start(
    logger: str,
    function: str,
    operation: str,
    message: str = "",
    context: Optional[Dict[str, Any]] = None
) -> None:
    """Log the start of an operation."""
    log_event(
        level="INFO",
        logger=logger,
        function=function,
        operation=operation,
        event="operation_start",
        message=message or f"Starting {operation}",
        context=context
    )


def log_operation_complete(
    logger: str,
    function: str,
    operation: str,
    message: str = "",
    context: Optional[Dict[str, Any]] = None,
    duration: Optional[float] = None
) -> None:
    """Log the completion of an operation."""
    context = dict(context or {})
    if duration is not None:
        context["duration_seconds"] = duration

    log_event(
        level="INFO",
        logger=logger,
        function=function,
        operation=operation,
        event="operation_complete",
        message=message or f"Completed {operation}",
        context=context
    )


def log_operation_error(
    logger: str,
    function: str,
    operation: str,
    error: Exception,
    message: str = "",
    context: Optional[Dict[str, Any]] = None
) -> None:
    """Log an operation error."""
    context = dict(context or {})
    context["error_type"] = type(error).__name__
    context["error_message"] = str(error)

    log_event(
        level="ERROR",
        logger=logger,
        function=function,
        operation=operation,
        event="operation_error",
        message=message or f"Error in {operation}",
        context=context,
        exc_info=error
    )


def operation_logger(operation_name: str):
    """
    Decorator to automatically log operation start/complete/error.

    Usage:
        @operation_logger("register_attachment")
        def register_attachment(...):
            ...
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger_name = func.__module__
            function_name = func.__name__

            log_operation_start(
                logger=logger_name,
                function=function_name,
                operation=operation_name,
                context={
                    "args": str(args)[:500] if args else None,
                    "kwargs": {k: str(v)[:200] for k, v in kwargs.items()} if kwargs else None
                }
            )

            start_time = datetime.now(timezone.utc)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                log_operation_error(
                    logger=logger_name,
                    function=function_name,
                    operation=operation_name,
                    error=e,
                    context={"duration_seconds": (datetime.now(timezone.utc) - start_time).total_seconds()}
                )
                raise

            log_operation_complete(
                logger=logger_name,
                function=function_name,
                operation=operation_name,
                context={"result_type": type(result).__name__},
                duration=(datetime.now(timezone.utc) - start_time).total_seconds()
            )
            return result

        return wrapper
    return decorator
