"""Tests for per-address session locks."""

import asyncio

import pytest

from sitedesk.engine.mutex import LocalSessionMutex


class TestLocalSessionMutex:
    """Tests for the in-process mutex."""

    @pytest.mark.asyncio
    async def test_serializes_same_address(self) -> None:
        mutex = LocalSessionMutex()
        order: list[str] = []

        async def worker(name: str) -> None:
            async with mutex.acquire("+1555") as acquired:
                assert acquired
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))

        assert order in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])

    @pytest.mark.asyncio
    async def test_different_addresses_run_concurrently(self) -> None:
        mutex = LocalSessionMutex(blocking_timeout=0.05)

        async with mutex.acquire("+1555") as first:
            async with mutex.acquire("+1666") as second:
                assert first and second

    @pytest.mark.asyncio
    async def test_timeout_yields_false(self) -> None:
        mutex = LocalSessionMutex(blocking_timeout=0.01)

        async with mutex.acquire("+1555"):
            async with mutex.acquire("+1555") as acquired:
                assert not acquired

    @pytest.mark.asyncio
    async def test_locks_are_dropped_when_unused(self) -> None:
        mutex = LocalSessionMutex()
        async with mutex.acquire("+1555"):
            assert len(mutex) == 1

        assert len(mutex) == 0
