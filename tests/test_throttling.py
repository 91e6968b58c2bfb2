import asyncio

import pytest

from hurley.errors import ConfigurationError
from hurley.throttling import ConcurrencyLimiter


def test_rejects_non_positive_size():
    with pytest.raises(ConfigurationError):
        ConcurrencyLimiter(0)


@pytest.mark.asyncio
async def test_never_exceeds_permits():
    limiter = ConcurrencyLimiter(3)

    async def hold():
        async with limiter:
            assert limiter.in_flight <= 3
            await asyncio.sleep(0.01)

    await asyncio.gather(*(hold() for _ in range(12)))
    assert limiter.peak_in_flight == 3
    assert limiter.in_flight == 0
    assert limiter.available == 3


@pytest.mark.asyncio
async def test_released_on_error():
    limiter = ConcurrencyLimiter(1)
    with pytest.raises(ValueError):
        async with limiter:
            raise ValueError("boom")
    assert limiter.in_flight == 0
    await asyncio.wait_for(limiter.acquire(), timeout=1)
    limiter.release()


@pytest.mark.asyncio
async def test_double_release_is_rejected():
    limiter = ConcurrencyLimiter(2)
    await limiter.acquire()
    limiter.release()
    with pytest.raises(RuntimeError):
        limiter.release()
    assert limiter.available == 2
