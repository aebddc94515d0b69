"""
Centralized Logging Utilities and Decorators

Provides the logging setup and function decorators shared by every podreel
subpackage. Each concern logs through its own named logger ("pipeline",
"polling", "tracker", "feed", "services", "content").

Usage:
    from podreel.logger import setup_logging, log_function

    logger = setup_logging(
        logger_name="pipeline",
        log_file="logs/pipeline.log",
        verbose=True
    )

    @log_function(logger_name="polling", log_execution_time=True)
    async def poll_batch(source, ids, outputs, config):
        ...
"""

import functools
import inspect
import logging
import os
import time
from pathlib import Path
from typing import Optional, Callable, Any


def debug_logging_enabled() -> bool:
    """Return True when the DEBUG_LOGGING environment flag is set to "true"."""
    return os.getenv("DEBUG_LOGGING", "false").strip().lower() == "true"


def setup_logging(
    logger_name: str,
    log_file: str = "logs/app.log",
    verbose: bool = False,
    level: int = logging.INFO,
) -> logging.Logger:
    """
    Set up logging with file and optional console handlers.

    Args:
        logger_name: Name for the logger (e.g., "pipeline")
        log_file: Path to log file (default: "logs/app.log")
        verbose: If True, add console handler with DEBUG level (default: False)
        level: Base logging level (default: logging.INFO)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)

    # Avoid adding multiple handlers if already configured
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG if verbose else level)

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_path)
    file_handler.setLevel(level)
    file_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    file_handler.setFormatter(file_formatter)
    logger.addHandler(file_handler)

    if verbose:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.DEBUG)
        console_formatter = logging.Formatter("DEBUG: %(message)s")
        console_handler.setFormatter(console_formatter)
        logger.addHandler(console_handler)

    return logger


def _resolve_logger(
    logger_name: str, func: Callable, log_file: Optional[str], level: int
) -> logging.Logger:
    if log_file:
        return setup_logging(
            logger_name=f"{logger_name}.{func.__name__}",
            log_file=log_file,
            level=level,
        )
    logger = logging.getLogger(logger_name)
    if not logger.handlers:
        logger = setup_logging(logger_name, level=level)
    return logger


def _entry_message(func: Callable, args: tuple, kwargs: dict, log_args: bool) -> str:
    log_msg = f"Calling {func.__name__}"
    if log_args and (args or kwargs):
        args_repr = [repr(a) for a in args]
        kwargs_repr = [f"{k}={v!r}" for k, v in kwargs.items()]
        log_msg += f" with args: {', '.join(args_repr + kwargs_repr)}"
    return log_msg


def _completion_message(
    func: Callable,
    execution_time: float,
    result: Any,
    log_execution_time: bool,
    log_result: bool,
) -> str:
    completion_msg = f"Completed {func.__name__}"
    if log_execution_time:
        completion_msg += f" in {execution_time:.2f}s"
    if log_result:
        completion_msg += f" with result: {result!r}"
    return completion_msg


def log_function(
    logger_name: Optional[str] = None,
    log_file: Optional[str] = None,
    level: int = logging.INFO,
    log_args: bool = False,
    log_result: bool = False,
    log_execution_time: bool = True,
) -> Callable:
    """
    Decorator to automatically log function entry, exit, execution time, and exceptions.

    Works on plain functions and on coroutine functions. For coroutines the
    timed block covers the awaited execution, not the coroutine creation.

    Args:
        logger_name: Custom logger name (if None, uses the decorated function's module name)
        log_file: Optional custom log file path (if None, uses existing logger config)
        level: Log level for entry/exit messages (default: logging.INFO)
        log_args: If True, log function arguments (default: False)
        log_result: If True, log return value (default: False)
        log_execution_time: If True, log execution duration (default: True)

    Returns:
        Decorated function with logging

    Example:
        @log_function(logger_name="services", log_args=True)
        async def submit(self, options):
            ...
    """

    def decorator(func: Callable) -> Callable:
        name = logger_name or func.__module__

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs) -> Any:
                logger = _resolve_logger(name, func, log_file, level)
                logger.log(level, _entry_message(func, args, kwargs, log_args))
                start_time = time.time()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    execution_time = time.time() - start_time
                    logger.error(
                        f"Exception in {func.__name__} after {execution_time:.2f}s: {type(e).__name__}: {e}",
                        exc_info=True,
                    )
                    raise
                logger.log(
                    level,
                    _completion_message(
                        func,
                        time.time() - start_time,
                        result,
                        log_execution_time,
                        log_result,
                    ),
                )
                return result

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            logger = _resolve_logger(name, func, log_file, level)
            logger.log(level, _entry_message(func, args, kwargs, log_args))
            start_time = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                execution_time = time.time() - start_time
                logger.error(
                    f"Exception in {func.__name__} after {execution_time:.2f}s: {type(e).__name__}: {e}",
                    exc_info=True,
                )
                raise
            logger.log(
                level,
                _completion_message(
                    func,
                    time.time() - start_time,
                    result,
                    log_execution_time,
                    log_result,
                ),
            )
            return result

        return wrapper

    return decorator


def log_with_timer(logger_name: Optional[str] = None) -> Callable:
    """
    Simple decorator that logs function entry/exit with execution time.

    Example:
        @log_with_timer("content")
        def extract_words(clip):
            ...
    """
    return log_function(
        logger_name=logger_name,
        log_args=False,
        log_result=False,
        log_execution_time=True,
    )
