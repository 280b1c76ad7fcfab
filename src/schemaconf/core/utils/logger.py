# schemaconf/core/utils/logger.py

"""
Logging configuration and utilities for schemaconf.

This module provides centralized logging configuration and helper functions
so that every part of the load/merge/validate pipeline reports in the same
format.

The logging system is designed to provide:
- Consistent log formatting across all modules
- Console output with optional file output
- Structured messages with module and context
- File operation logging for bootstrap copies and rewrites

Soft conditions raised while resolving a configuration object (a missing
soft-required field, a default that could not be parsed, a failing custom
loader) are reported through these helpers and never raised.
"""

import logging
import sys

# Global logger instance for singleton pattern
_logger: logging.Logger | None = None

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOGGER_NAME = "schemaconf"


def setup_logging(
    level: str = DEFAULT_LOG_LEVEL,
    log_file: str | None = None,
    format_string: str | None = None,
) -> logging.Logger:
    """
    Set up logging configuration for schemaconf.

    Initializes the package logger with a console handler and an optional
    file handler. Calling it again replaces the previous handlers.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (optional). If provided, logs will be
                 written to both console and file.
        format_string: Custom log format string (optional). Uses default
                      format if not provided.

    Returns:
        Configured logger instance
    """
    global _logger

    logger = logging.getLogger(LOGGER_NAME)
    logger.disabled = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(getattr(logging, level.upper()))

    formatter = logging.Formatter(format_string or DEFAULT_LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(getattr(logging, level.upper()))
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    """
    Get the package logger.

    Unlike the application entry points, library code never installs
    handlers implicitly: until `setup_logging` is called the logger simply
    propagates to whatever the host application configured.

    Returns:
        The package logger instance
    """
    if _logger is None:
        return logging.getLogger(LOGGER_NAME)
    return _logger


def reset_logging() -> None:
    """
    Remove every handler installed by `setup_logging` and forget the logger.

    Mainly useful in tests, where each case should start from an
    unconfigured package logger.
    """
    global _logger

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    _logger = None


def _format(module: str, message: str, context: str = "") -> str:
    text = f"[{module.upper()}] {message}"
    if context:
        text += f" | Context: {context}"
    return text


def log_error(
    module: str,
    error: str,
    context: str = "",
    exception: Exception | None = None,
    logger: logging.Logger | None = None,
) -> None:
    """
    Log a standardized error message.

    Args:
        module: Name of the module where the error occurred
        error: Error message describing what went wrong
        context: Additional context information (optional)
        exception: Exception object to include stack trace (optional)
        logger: Logger to write to instead of the package logger (optional)
    """
    target = logger or get_logger()
    message = _format(module, error, context)
    if exception is not None:
        target.error(message, exc_info=exception)
    else:
        target.error(message)


def log_warning(
    module: str,
    warning: str,
    context: str = "",
    logger: logging.Logger | None = None,
) -> None:
    """
    Log a standardized warning message.

    Warnings indicate conditions that do not stop a configuration from
    loading but leave a field without a value.
    """
    (logger or get_logger()).warning(_format(module, warning, context))


def log_info(
    module: str,
    message: str,
    context: str = "",
    logger: logging.Logger | None = None,
) -> None:
    """Log a standardized info message."""
    (logger or get_logger()).info(_format(module, message, context))


def log_debug(
    module: str,
    message: str,
    context: str = "",
    logger: logging.Logger | None = None,
) -> None:
    """Log a standardized debug message."""
    (logger or get_logger()).debug(_format(module, message, context))


def log_file_operation(
    operation: str,
    file_path: str,
    success: bool,
    error: str | None = None,
    logger: logging.Logger | None = None,
) -> None:
    """
    Log a file operation.

    Args:
        operation: Type of operation (copy, write, replace, etc.)
        file_path: Path to the file being operated on
        success: Whether the operation was successful
        error: Error message if the operation failed (optional)
        logger: Logger to write to instead of the package logger (optional)
    """
    target = logger or get_logger()
    if success:
        target.info(f"File {operation}: {file_path}")
    else:
        target.error(f"File {operation} failed: {file_path} - {error}")
