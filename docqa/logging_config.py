"""Logging setup and latency tracking for the ingestion and answer pipelines."""

import logging
import time
from functools import wraps
from typing import Awaitable, Callable


def setup_logging(level: int | str = logging.INFO):
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def log_latency(operation_name: str):
    """Log the latency and outcome of every call to an async function."""

    def decorator(func: Callable[..., Awaitable]):
        logger = logging.getLogger(func.__module__)

        @wraps(func)
        async def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except BaseException as e:
                latency_ms = (time.perf_counter() - start) * 1000
                logger.error(
                    "%s | latency_ms=%.2f | status=error | error=%r",
                    operation_name, latency_ms, e,
                )
                raise
            latency_ms = (time.perf_counter() - start) * 1000
            logger.info("%s | latency_ms=%.2f | status=success", operation_name, latency_ms)
            return result

        return wrapper

    return decorator
