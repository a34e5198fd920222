"""
Tests for cancellable waits.
"""

import asyncio

import pytest

from genass.core.error_handler import GenerationCancelled
from genass.generation.cancellation import CancellationToken, cancellable_sleep


class TestCancellationToken:

    def test_raise_if_cancelled(self):
        token = CancellationToken()
        token.raise_if_cancelled()

        token.cancel()

        assert token.cancelled
        with pytest.raises(GenerationCancelled):
            token.raise_if_cancelled()

    @pytest.mark.asyncio
    async def test_wait_times_out(self):
        assert await CancellationToken().wait(0.01) is False

    @pytest.mark.asyncio
    async def test_wait_returns_on_cancel(self):
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel)

        assert await token.wait(5) is True


class TestCancellableSleep:

    @pytest.mark.asyncio
    async def test_sleep_without_token(self):
        await cancellable_sleep(0)

    @pytest.mark.asyncio
    async def test_sleep_completes_when_not_cancelled(self):
        await cancellable_sleep(0.01, CancellationToken())

    @pytest.mark.asyncio
    async def test_already_cancelled_token_raises(self):
        token = CancellationToken()
        token.cancel()

        with pytest.raises(GenerationCancelled):
            await cancellable_sleep(60, token)

    @pytest.mark.asyncio
    async def test_cancel_during_sleep_raises(self):
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel)

        with pytest.raises(GenerationCancelled):
            await cancellable_sleep(60, token)
