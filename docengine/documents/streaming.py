"""Cancellation token and single-subscriber token channel for streamed generation."""
from __future__ import annotations

import asyncio
from typing import AsyncIterator

_END = object()


class CancellationToken:
    """Cooperative stop signal. The pipeline checks it between increments."""

    def __init__(self) -> None:
        self._cancelled = False
        self.reason: str | None = None

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._cancelled:
            self._cancelled = True
            self.reason = reason

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class TokenChannel:
    """Ordered text increments from one writer to exactly one subscriber.

    close() ends the stream; close(error) re-raises error in the subscriber
    after the increments already sent have been delivered.
    """

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: asyncio.Queue = asyncio.Queue(maxsize)
        self._closed = False
        self._subscribed = False
        self._error: BaseException | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, text: str) -> None:
        if self._closed:
            raise RuntimeError("send on closed TokenChannel")
        await self._queue.put(text)

    async def close(self, error: BaseException | None = None) -> None:
        if self._closed:
            return
        self._closed = True
        self._error = error
        await self._queue.put(_END)

    def __aiter__(self) -> AsyncIterator[str]:
        if self._subscribed:
            raise RuntimeError("TokenChannel already has a subscriber")
        self._subscribed = True
        return self._drain()

    async def _drain(self) -> AsyncIterator[str]:
        while True:
            item = await self._queue.get()
            if item is _END:
                if self._error is not None:
                    raise self._error
                return
            yield item
