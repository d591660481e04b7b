"""Bounded polling for the asynchronous effects of the automation under test."""

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from ..config.models import WaitTiming

logger = logging.getLogger(__name__)

T = TypeVar("T")

Predicate = Callable[[], bool | Awaitable[bool]]


async def _evaluate(fn: Callable[[], Any]) -> Any:
    result = fn()
    if inspect.isawaitable(result):
        result = await result
    return result


class Waiter:
    """Polls a predicate with a fixed initial wait, a step and a deadline.

    Timeouts are reported as a falsy return value rather than an exception so
    the calling test decides how to fail, with its own assertion message.
    Errors raised by the predicate itself propagate unchanged.
    """

    def __init__(
        self,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sleep = sleep
        self._clock = clock

    async def await_value(
        self,
        fetch: Callable[[], T | Awaitable[T]],
        accept: Callable[[T], bool],
        initial_wait: float = 0.0,
        interval: float = 5.0,
        timeout: float = 60.0,
        description: str = "condition",
    ) -> T | None:
        """Poll ``fetch`` until ``accept`` holds for its value.

        Returns:
            The last fetched value, or None if nothing was ever fetched.
            Callers check ``accept`` again to tell success from timeout.
        """
        start = self._clock()
        deadline = start + timeout
        last: T | None = None
        polls = 0

        if initial_wait > 0:
            await self._sleep(initial_wait)

        while True:
            polls += 1
            last = await _evaluate(fetch)
            if accept(last):
                logger.debug(
                    f"{description} satisfied after {polls} poll(s), "
                    f"{self._clock() - start:.1f}s"
                )
                return last

            remaining = deadline - self._clock()
            if remaining <= 0:
                logger.info(
                    f"{description} not satisfied within {timeout:.0f}s "
                    f"({polls} poll(s))"
                )
                return last

            await self._sleep(min(interval, remaining) if interval > 0 else remaining)

    async def await_condition(
        self,
        predicate: Predicate,
        initial_wait: float = 0.0,
        interval: float = 5.0,
        timeout: float = 60.0,
        description: str = "condition",
    ) -> bool:
        """Poll ``predicate`` until it is true or ``timeout`` elapses."""
        result = await self.await_value(
            predicate,
            bool,
            initial_wait=initial_wait,
            interval=interval,
            timeout=timeout,
            description=description,
        )
        return bool(result)

    async def await_with(
        self, predicate: Predicate, timing: WaitTiming, description: str = "condition"
    ) -> bool:
        """Poll using a configured timing profile."""
        return await self.await_condition(
            predicate,
            initial_wait=timing.initial,
            interval=timing.interval,
            timeout=timing.timeout,
            description=description,
        )
