"""Unit tests for the SSE broadcaster and the browser notification relay."""

import asyncio
import json

import pytest

from fakes import RecordingPublisher
from studio_tracker.application.services import SSEManager
from studio_tracker.infrastructure.notifications.browser_notifier import BrowserNotifier


# ── SSEManager ──


@pytest.mark.asyncio
async def test_published_events_reach_subscribers():
    sse = SSEManager()
    stream = sse.subscribe()
    first = asyncio.ensure_future(stream.__anext__())
    await asyncio.sleep(0)
    assert sse.client_count == 1

    sse.publish("toast", {"title": "New Project"})
    message = await asyncio.wait_for(first, timeout=1)

    event_line, data_line, _, _ = message.split("\n")
    assert event_line == "event: toast"
    assert json.loads(data_line.removeprefix("data: ")) == {"title": "New Project"}
    await stream.aclose()


@pytest.mark.asyncio
async def test_full_queue_disconnects_slow_client():
    sse = SSEManager(max_queue_size=2)
    stream = sse.subscribe()
    first = asyncio.ensure_future(stream.__anext__())
    await asyncio.sleep(0)

    for n in range(5):
        sse.publish("chat_update", {"n": n})

    assert sse.client_count == 0
    with pytest.raises(StopAsyncIteration):
        await asyncio.wait_for(first, timeout=1)


@pytest.mark.asyncio
async def test_shutdown_ends_every_stream():
    sse = SSEManager()
    stream = sse.subscribe()
    pending = asyncio.ensure_future(stream.__anext__())
    await asyncio.sleep(0)

    await sse.shutdown()

    with pytest.raises(StopAsyncIteration):
        await asyncio.wait_for(pending, timeout=1)
    assert sse.client_count == 0


# ── BrowserNotifier ──


@pytest.mark.asyncio
async def test_permission_request_is_relayed_only_while_undecided():
    publisher = RecordingPublisher()
    notifier = BrowserNotifier(publisher)

    assert await notifier.request_permission() == "default"
    notifier.set_permission("denied")
    assert await notifier.request_permission() == "denied"

    assert len(publisher.of_type("notification_permission_request")) == 1


def test_show_requires_granted_permission():
    publisher = RecordingPublisher()
    notifier = BrowserNotifier(publisher)

    assert notifier.show("Title", "Body") is False
    notifier.set_permission("granted")
    assert notifier.show("Title", "Body", icon="/logo192.png") is True

    assert publisher.of_type("native_notification") == [
        {"title": "Title", "body": "Body", "icon": "/logo192.png"}
    ]


def test_unknown_permission_is_rejected():
    notifier = BrowserNotifier(RecordingPublisher())

    with pytest.raises(ValueError):
        notifier.set_permission("maybe")
    assert BrowserNotifier(RecordingPublisher(), permission="bogus").permission == "default"
