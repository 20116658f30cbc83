# src/tutorslots/services/base.py
"""
Base Service Pattern for the slot booking engine.

Provides common functionality for all service classes including:
- Logging
- Performance monitoring
- Concurrent store fetches
"""

import asyncio
from functools import wraps
import logging
import time
from typing import Any, Awaitable, Callable, List, Optional, TypeVar, cast

from ..config import Settings
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

SLOW_OPERATION_SECONDS = 1.0


async def gather_or_cancel(*aws: Awaitable[Any]) -> List[Any]:
    """
    Run awaitables concurrently and return their results in order.

    Unlike a bare ``asyncio.gather``, the first failure cancels the siblings
    that are still running before the exception propagates.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class BaseService:
    """
    Base class for all service layer components.

    Provides common patterns for:
    - Settings access
    - Logging
    - Per-operation timing
    """

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize base service.

        Args:
            settings: Optional settings; loaded from the environment when omitted
        """
        self.settings = settings or Settings()
        self.logger = logging.getLogger(self.__class__.__name__)

    @staticmethod
    def measure_operation(operation_name: str) -> Callable:
        """
        Decorator to measure operation performance.

        Usage:
            @BaseService.measure_operation("book_slot")
            async def book_slot(self, session_id, student_id):
                ...

        Args:
            operation_name: Name of the operation for metrics

        Returns:
            Decorator function
        """

        F = TypeVar("F", bound=Callable[..., Any])

        def _finish(self: Any, started: float, success: bool, error_type: Optional[str]) -> None:
            elapsed = time.perf_counter() - started
            if elapsed > SLOW_OPERATION_SECONDS and hasattr(self, "logger"):
                self.logger.warning(
                    "Slow operation detected: %s took %.2fs", operation_name, elapsed
                )
            prometheus_metrics.record_service_operation(
                service=self.__class__.__name__,
                operation=operation_name,
                duration=elapsed,
                status="success" if success else "error",
                error_type=error_type,
            )

        def decorator(func: F) -> F:
            if not asyncio.iscoroutinefunction(func):

                @wraps(func)
                def wrapper(self, *args, **kwargs):
                    started = time.perf_counter()
                    success = False
                    error_type = None
                    try:
                        result = func(self, *args, **kwargs)
                        success = True
                        return result
                    except Exception as e:
                        error_type = type(e).__name__
                        raise
                    finally:
                        _finish(self, started, success, error_type)

                return cast(F, wrapper)

            @wraps(func)
            async def async_wrapper(self, *args, **kwargs):
                started = time.perf_counter()
                success = False
                error_type = None
                try:
                    result = await func(self, *args, **kwargs)
                    success = True
                    return result
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    _finish(self, started, success, error_type)

            return cast(F, async_wrapper)

        return decorator
