"""Tests for single-flight view loading."""

import asyncio

import pytest

from trainingdesk_client.views import ViewLoader


@pytest.mark.unit
class TestViewLoader:

    @pytest.mark.asyncio
    async def test_returns_fetched_value(self):
        loader = ViewLoader("events")

        async def fetch():
            return ["a", "b"]

        assert await loader.load(fetch) == ["a", "b"]
        assert not loader.loading

    @pytest.mark.asyncio
    async def test_newer_load_supersedes_older(self):
        loader = ViewLoader("events")
        release = asyncio.Event()
        started = []

        async def slow():
            started.append("slow")
            await release.wait()
            return "stale"

        async def fast():
            return "fresh"

        first = asyncio.create_task(loader.load(slow))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert loader.loading

        second = await loader.load(fast)
        release.set()

        assert second == "fresh"
        assert await first is None
        assert started == ["slow"]

    @pytest.mark.asyncio
    async def test_abandon_discards_pending_result(self):
        loader = ViewLoader("roster")
        release = asyncio.Event()

        async def slow():
            await release.wait()
            return "late"

        pending = asyncio.create_task(loader.load(slow))
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        loader.abandon()
        release.set()

        assert await pending is None
        assert loader.abandoned
        assert not loader.loading

    @pytest.mark.asyncio
    async def test_load_after_abandon_raises(self):
        loader = ViewLoader("roster")
        loader.abandon()

        async def fetch():
            return 1

        with pytest.raises(RuntimeError):
            await loader.load(fetch)

    @pytest.mark.asyncio
    async def test_fetch_errors_propagate(self):
        loader = ViewLoader("students")

        async def broken():
            raise ValueError("boom")

        with pytest.raises(ValueError):
            await loader.load(broken)
