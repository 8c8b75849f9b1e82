"""Tests for the live report event stream."""

import json
from dataclasses import replace

import pytest

from errors import SubscriberLimitError
from hub import KEEPALIVE_FRAME
from schemas import ReportCreate
from service import ReportService
from stream import StreamSubscription, open_event_stream


def decode(frame):
    assert frame.startswith("data: ") and frame.endswith("\n\n")
    return json.loads(frame[len("data: "):])


@pytest.mark.asyncio
async def test_init_is_first_frame(remote, service):
    remote.add_report_row(id="db-1")
    frames = await open_event_stream(service, keepalive_seconds=5)
    try:
        event = decode(await frames.__anext__())
        assert event["type"] == "init"
        assert [r["id"] for r in event["reports"]] == ["db-1"]
    finally:
        await frames.aclose()


@pytest.mark.asyncio
async def test_changes_follow_init(service):
    frames = await open_event_stream(service, keepalive_seconds=5)
    try:
        await frames.__anext__()
        created = await service.create_report(ReportCreate(title="Live"))
        await service.update_status(created.id, "Solved")
        await service.delete_report(created.id)

        events = [decode(await frames.__anext__()) for _ in range(3)]
        assert [e["type"] for e in events] == ["created", "updated", "deleted"]
        assert events[0]["report"]["id"] == created.id
        assert events[1]["report"]["status"] == "Solved"
        assert events[2] == {"type": "deleted", "id": created.id}
    finally:
        await frames.aclose()


@pytest.mark.asyncio
async def test_keepalive_when_idle(service):
    frames = await open_event_stream(service, keepalive_seconds=0.05)
    try:
        await frames.__anext__()
        assert await frames.__anext__() == KEEPALIVE_FRAME
    finally:
        await frames.aclose()


@pytest.mark.asyncio
async def test_placeholders_on_empty_snapshot(remote, settings):
    service = ReportService(remote, replace(settings, placeholder_seed=True))
    frames = await open_event_stream(service, keepalive_seconds=5)
    try:
        event = decode(await frames.__anext__())
        assert len(event["reports"]) == 15
    finally:
        await frames.aclose()


@pytest.mark.asyncio
async def test_disconnect_unsubscribes(service):
    frames = await open_event_stream(service, keepalive_seconds=5)
    await frames.__anext__()
    assert len(service.hub) == 1

    await frames.aclose()
    assert len(service.hub) == 0


@pytest.mark.asyncio
async def test_unstarted_stream_holds_no_slot(service):
    frames = await open_event_stream(service, keepalive_seconds=5)
    assert len(service.hub) == 0

    # a response dropped before its first read never registers
    del frames
    assert len(service.hub) == 0


@pytest.mark.asyncio
async def test_subscriber_limit(remote, settings):
    service = ReportService(remote, replace(settings, max_subscribers=1))
    frames = await open_event_stream(service, keepalive_seconds=5)
    try:
        await frames.__anext__()
        with pytest.raises(SubscriberLimitError):
            await open_event_stream(service, keepalive_seconds=5)
        assert len(service.hub) == 1
    finally:
        await frames.aclose()


@pytest.mark.asyncio
async def test_limit_reached_before_first_read_ends_stream(remote, settings):
    service = ReportService(remote, replace(settings, max_subscribers=1))
    first = await open_event_stream(service, keepalive_seconds=5)
    second = await open_event_stream(service, keepalive_seconds=5)
    try:
        await first.__anext__()
        assert [frame async for frame in second] == []
        assert len(service.hub) == 1
    finally:
        await first.aclose()


@pytest.mark.asyncio
async def test_stalled_reader_is_pruned(remote, settings):
    service = ReportService(remote, replace(settings, subscriber_queue_size=2))
    frames = await open_event_stream(service, keepalive_seconds=5)
    await frames.__anext__()

    # two frames fill the queue; the third overflows it
    for title in ("one", "two", "three"):
        await service.create_report(ReportCreate(title=title))
    assert len(service.hub) == 0

    remaining = [frame async for frame in frames]
    assert [decode(f)["report"]["title"] for f in remaining] == ["two"]


@pytest.mark.asyncio
async def test_server_shutdown_ends_stream(service):
    frames = await open_event_stream(service, keepalive_seconds=5)
    assert decode(await frames.__anext__())["type"] == "init"
    service.close()

    assert [frame async for frame in frames] == []
    assert len(service.hub) == 0


class TestStreamSubscription:

    @pytest.mark.asyncio
    async def test_write_after_close_is_dropped(self):
        subscription = StreamSubscription(maxsize=4)
        subscription.close()
        subscription.write("data: {}\n\n")

        assert subscription.queue.get_nowait() is None
        assert subscription.queue.empty()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        subscription = StreamSubscription(maxsize=1)
        subscription.write("data: {}\n\n")
        subscription.close()
        subscription.close()

        assert subscription.queue.qsize() == 1
        assert subscription.queue.get_nowait() is None
