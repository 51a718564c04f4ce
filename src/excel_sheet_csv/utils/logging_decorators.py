"""Logging decorators and context managers for operation tracing.

``log_operation`` wraps a function, ``operation_context`` wraps a block.
Both log start/success/failure at DEBUG (failures at ERROR) with a
``structured`` payload and hand an ``OperationRecord`` to the metrics
collector.
"""

import functools
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generator, Optional, Union

from .metrics import OperationRecord, get_metrics_collector, start_operation
from .run_context import RunContext


LoggerLike = Union[logging.Logger, logging.LoggerAdapter]


def _summarize_args(args: tuple, kwargs: Dict[str, Any]) -> Dict[str, Any]:
    """Shorten function arguments for logging.

    Args:
        args: Positional arguments
        kwargs: Keyword arguments

    Returns:
        Dictionary of truncated argument representations
    """
    summary: Dict[str, Any] = {}
    for i, arg in enumerate(args[:3]):
        text = str(arg)
        summary[f"arg_{i}"] = text if len(text) <= 200 else text[:200] + "..."
    for key, value in list(kwargs.items())[:5]:
        text = str(value)
        summary[key] = text if len(text) <= 200 else text[:200] + "..."
    return summary


def _finish(
    record: OperationRecord,
    logger: LoggerLike,
    error: Optional[BaseException] = None
) -> None:
    record.finish(error)
    get_metrics_collector().record(record)

    data = {
        "operation": record.name,
        "run_id": record.run_id,
        "status": "SUCCESS" if error is None else "ERROR",
        "duration_ms": record.duration_ms,
    }
    if error is None:
        logger.debug("Operation completed", extra={"structured": data})
    else:
        data["error_type"] = record.error_type
        data["error_message"] = str(error)
        logger.error("Operation failed", extra={"structured": data})


def log_operation(operation_name: str, log_args: bool = True) -> Callable:
    """Decorator tracing a function call as a named operation.

    Args:
        operation_name: Name of the operation being logged
        log_args: Whether to include function arguments in the start record

    Returns:
        Decorated function
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            logger = logging.getLogger(func.__module__)
            record = start_operation(operation_name, RunContext.ensure_run_id())

            start = {"operation": operation_name, "status": "START"}
            if log_args:
                start["args"] = _summarize_args(args, kwargs)
            logger.debug("Operation started", extra={"structured": start})

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _finish(record, logger, e)
                raise

            _finish(record, logger)
            return result

        return wrapper
    return decorator


@contextmanager
def operation_context(
    operation_name: str,
    logger: Optional[LoggerLike] = None,
    **metadata: Any
) -> Generator[OperationRecord, None, None]:
    """Context manager tracing a block as a named operation.

    Args:
        operation_name: Name of the operation
        logger: Logger to use (defaults to this module's logger)
        **metadata: Additional metadata stored on the operation record

    Yields:
        OperationRecord for the block; callers may add metadata to it
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    record = start_operation(operation_name, RunContext.ensure_run_id(), **metadata)

    logger.debug(
        "Operation context started",
        extra={"structured": {"operation": operation_name, "status": "START", **metadata}}
    )

    try:
        yield record
    except Exception as e:
        _finish(record, logger, e)
        raise

    _finish(record, logger)
