"""TokenChannel ordering/termination and CancellationToken."""
import asyncio

import pytest

from docengine.documents import CancellationToken, TokenChannel


@pytest.mark.asyncio
async def test_increments_arrive_in_order():
    channel = TokenChannel()
    received: list[str] = []

    async def consume():
        async for piece in channel:
            received.append(piece)

    task = asyncio.create_task(consume())
    for piece in ["a", "b", "c"]:
        await channel.send(piece)
    await channel.close()
    await task
    assert received == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_close_with_error_raises_after_delivered_pieces():
    channel = TokenChannel()
    await channel.send("x")
    await channel.close(ValueError("boom"))
    received = []
    with pytest.raises(ValueError, match="boom"):
        async for piece in channel:
            received.append(piece)
    assert received == ["x"]


@pytest.mark.asyncio
async def test_send_after_close_and_double_close():
    channel = TokenChannel()
    await channel.close()
    await channel.close()
    assert channel.closed
    with pytest.raises(RuntimeError):
        await channel.send("late")


def test_single_subscriber():
    channel = TokenChannel()
    channel.__aiter__()
    with pytest.raises(RuntimeError):
        channel.__aiter__()


def test_cancellation_token_keeps_first_reason():
    token = CancellationToken()
    assert not token.cancelled
    token.cancel("user")
    token.cancel("timeout")
    assert token.cancelled
    assert token.reason == "user"
