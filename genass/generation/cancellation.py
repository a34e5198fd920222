"""
Cancellable waits.

Every deliberate delay in the pipeline (retry backoff, the pause between
regenerations, the pause between batches) goes through cancellable_sleep so a
single CancellationToken can end all of them at once.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from genass.core.error_handler import GenerationCancelled


class CancellationToken:
    """
    Shared cancellation flag for one generation run.

    The event is created lazily so a token can be built outside a running
    event loop (e.g. by the CLI before asyncio.run).
    """

    def __init__(self):
        self._cancelled = False
        self._event: Optional[asyncio.Event] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._event is not None:
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise GenerationCancelled()

    def _get_event(self) -> asyncio.Event:
        if self._event is None:
            self._event = asyncio.Event()
            if self._cancelled:
                self._event.set()
        return self._event

    async def wait(self, timeout: float) -> bool:
        """
        Wait up to timeout seconds for cancellation.

        Returns:
            True if the token was cancelled, False if the timeout expired.
        """
        if self._cancelled:
            return True
        try:
            await asyncio.wait_for(self._get_event().wait(), timeout=max(timeout, 0))
        except asyncio.TimeoutError:
            return False
        return True


SleepFunc = Callable[[float, Optional[CancellationToken]], Awaitable[None]]


async def cancellable_sleep(seconds: float, token: Optional[CancellationToken] = None) -> None:
    """
    Sleep for the given number of seconds unless the token is cancelled first.

    Raises:
        GenerationCancelled: If the token is (or becomes) cancelled.
    """
    if token is None:
        await asyncio.sleep(seconds)
        return

    if await token.wait(seconds):
        raise GenerationCancelled()
