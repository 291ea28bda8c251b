"""Tests for JobRegistry admission and release."""
import asyncio
import threading
import pytest
from projectgen.core.jobs import JobRegistry


def test_try_start_admits_once_per_project():
    registry = JobRegistry()

    assert registry.try_start("p1")
    assert not registry.try_start("p1")
    assert registry.try_start("p2")
    assert sorted(registry.running()) == ["p1", "p2"]
    assert len(registry) == 2


def test_release_frees_slot():
    registry = JobRegistry()
    registry.try_start("p1")

    registry.release("p1")

    assert not registry.is_running("p1")
    assert registry.try_start("p1")


def test_release_unknown_is_noop():
    JobRegistry().release("missing")


def test_concurrent_try_start_admits_exactly_one():
    """Racing admissions from many threads produce a single winner."""
    registry = JobRegistry()
    results = []
    barrier = threading.Barrier(16)

    def worker():
        barrier.wait()
        results.append(registry.try_start("p1"))

    threads = [threading.Thread(target=worker) for _ in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 1


def test_mark_started_reports_pending_cancel():
    registry = JobRegistry()
    registry.try_start("p1")

    assert registry.cancel("p1")
    assert registry.mark_started("p1") is True


def test_mark_started_without_cancel():
    registry = JobRegistry()
    registry.try_start("p1")

    assert registry.mark_started("p1") is False
    assert registry.get("p1").started


def test_cancel_unknown_returns_false():
    assert not JobRegistry().cancel("missing")


@pytest.mark.asyncio
async def test_release_with_stale_task_keeps_newer_slot():
    """A finished job never frees a slot that now belongs to another task."""
    registry = JobRegistry()
    old = asyncio.create_task(asyncio.sleep(0))
    new = asyncio.create_task(asyncio.sleep(0))
    registry.try_start("p1")
    registry.attach("p1", new)

    registry.release("p1", old)
    assert registry.is_running("p1")

    registry.release("p1", new)
    assert not registry.is_running("p1")
    await asyncio.gather(old, new)


@pytest.mark.asyncio
async def test_cancel_started_job_cancels_task():
    registry = JobRegistry()
    task = asyncio.create_task(asyncio.sleep(10))
    registry.try_start("p1")
    registry.attach("p1", task)
    registry.mark_started("p1")

    assert registry.cancel("p1")
    with pytest.raises(asyncio.CancelledError):
        await task


@pytest.mark.asyncio
async def test_attach_after_release_is_ignored():
    registry = JobRegistry()
    task = asyncio.create_task(asyncio.sleep(0))

    registry.attach("p1", task)

    assert registry.get("p1") is None
    await task
