"""Unit tests for the ChatEngine."""

from datetime import datetime, timedelta

import pytest

from fakes import EPOCH, FakeDocumentStore, FakeLocalStorage, RecordingPublisher
from studio_tracker.application.services import ChatEngine, NotificationSender
from studio_tracker.application.services.chat_engine import (
    MENTION_TITLE,
    ChatStatus,
    count_unread_messages,
    mention_body,
)
from studio_tracker.domain.entities import (
    ChatMessage,
    Mention,
    Reference,
    ReferenceType,
    Session,
)

ME = Session(id="u1", email="me@studio.test", name="Maya")
NOW = EPOCH + timedelta(hours=2)


def _seed_messages(store: FakeDocumentStore, count: int, sender_id: str = "u2") -> None:
    for n in range(1, count + 1):
        store.seed("chatMessages", f"m{n}", {
            "content": f"message {n}",
            "senderId": sender_id,
            "senderName": "Ali",
            "createdAt": EPOCH + timedelta(minutes=n),
        })


def _seed_lookups(store: FakeDocumentStore) -> None:
    store.seed("users", "u1", {"name": "Maya", "email": "me@studio.test"})
    store.seed("users", "u2", {"name": "Ali", "email": "ali@studio.test"})
    store.seed("projects", "p1", {"name": "Launch"})
    store.seed("projects", "p2", {"projectName": "Fallback"})
    store.seed("videos", "v1", {"product": "Shoes"})
    store.seed("scripts", "s1", {})
    store.seed("postproductions", "pp1", {"videoName": "Teaser"})


def _engine(
    store: FakeDocumentStore,
    storage: FakeLocalStorage | None = None,
    publisher: RecordingPublisher | None = None,
    message_limit: int = 100,
    now: datetime = NOW,
) -> ChatEngine:
    return ChatEngine(
        store,
        storage or FakeLocalStorage(),
        NotificationSender(store),
        publisher or RecordingPublisher(),
        message_limit=message_limit,
        clock=lambda: now,
    )


# ── Pure helpers ──


def test_count_unread_ignores_own_and_already_read_messages():
    t = EPOCH + timedelta(minutes=2)
    messages = [
        ChatMessage("a", "x", "u2", "Ali", EPOCH + timedelta(minutes=1)),
        ChatMessage("b", "x", "u2", "Ali", t),
        ChatMessage("c", "x", "u1", "Maya", EPOCH + timedelta(minutes=3)),
        ChatMessage("d", "x", "u2", "Ali", EPOCH + timedelta(minutes=4)),
    ]

    assert count_unread_messages(messages, "u1", t, NOW) == 1


def test_count_unread_without_watermark_uses_fallback_window():
    messages = [
        ChatMessage("old", "x", "u2", "Ali", NOW - timedelta(hours=30)),
        ChatMessage("new", "x", "u2", "Ali", NOW - timedelta(hours=1)),
    ]

    assert count_unread_messages(messages, "u1", None, NOW, fallback_hours=24) == 1


def test_mention_body_truncates_long_messages():
    assert mention_body("Ali", "short") == 'Ali mentioned you: "short"'
    body = mention_body("Ali", "x" * 60)
    assert body == f'Ali mentioned you: "{"x" * 50}..."'


# ── Engine ──


@pytest.mark.asyncio
async def test_start_loads_window_oldest_first_and_lookups():
    store = FakeDocumentStore()
    _seed_messages(store, 3)
    _seed_lookups(store)
    engine = _engine(store)

    await engine.start(ME)

    assert engine.status is ChatStatus.LIVE
    assert [m.id for m in engine.messages] == ["m1", "m2", "m3"]
    assert {u.name for u in engine.users} == {"Maya", "Ali"}
    catalogs = engine.catalogs
    assert {i.name for i in catalogs[ReferenceType.PROJECT]} == {"Launch", "Fallback"}
    assert catalogs[ReferenceType.VIDEO][0].name == "Shoes"
    assert catalogs[ReferenceType.SCRIPT][0].name == "Untitled Script"
    assert catalogs[ReferenceType.POST_PRODUCTION][0].name == "Teaser"


@pytest.mark.asyncio
async def test_window_keeps_only_the_most_recent_messages():
    store = FakeDocumentStore()
    _seed_messages(store, 5)
    engine = _engine(store, message_limit=3)

    await engine.start(ME)

    assert [m.id for m in engine.messages] == ["m3", "m4", "m5"]


@pytest.mark.asyncio
async def test_unread_respects_stored_watermark():
    store = FakeDocumentStore()
    _seed_messages(store, 4)
    store.seed("chatMessages", "own", {
        "content": "mine", "senderId": "u1", "senderName": "Maya",
        "createdAt": EPOCH + timedelta(minutes=10),
    })
    watermark = EPOCH + timedelta(minutes=2)
    storage = FakeLocalStorage({"chat_lastRead_u1": watermark.isoformat()})
    engine = _engine(store, storage)

    await engine.start(ME)

    assert engine.last_read == watermark
    assert engine.unread_count == 2


@pytest.mark.asyncio
async def test_open_clears_unread_and_persists_watermark():
    store = FakeDocumentStore()
    _seed_messages(store, 3)
    watermark = EPOCH + timedelta(minutes=1)
    storage = FakeLocalStorage({"chat_lastRead_u1": watermark.isoformat()})
    engine = _engine(store, storage)
    await engine.start(ME)
    assert engine.unread_count == 2

    engine.open()

    assert engine.is_open
    assert engine.unread_count == 0
    saved = datetime.fromisoformat(storage.items["chat_lastRead_u1"])
    assert saved >= watermark


@pytest.mark.asyncio
async def test_messages_arriving_while_open_are_read():
    store = FakeDocumentStore()
    later = EPOCH + timedelta(days=1)
    engine = _engine(store, now=later)
    await engine.start(ME)
    engine.open()

    await store.create("chatMessages", {
        "content": "hi", "senderId": "u2", "senderName": "Ali", "createdAt": later,
    })

    assert engine.unread_count == 0
    engine.close()
    assert not engine.is_open


@pytest.mark.asyncio
async def test_toggle_flips_panel():
    store = FakeDocumentStore()
    engine = _engine(store)
    await engine.start(ME)

    assert engine.toggle() is True
    assert engine.toggle() is False


@pytest.mark.asyncio
async def test_send_writes_message_and_notifies_other_mentions():
    store = FakeDocumentStore()
    engine = _engine(store)
    await engine.start(ME)

    sent = await engine.send(
        "  hello @Ali and @Maya see #project:Launch  ",
        [Mention("u2", "Ali"), Mention("u1", "Maya")],
        [Reference(ReferenceType.PROJECT, "p1", "Launch")],
    )

    assert sent is True
    [message] = store.docs("chatMessages").values()
    assert message["content"] == "hello @Ali and @Maya see #project:Launch"
    assert message["senderId"] == "u1"
    assert message["mentions"] == [
        {"userId": "u2", "userName": "Ali"},
        {"userId": "u1", "userName": "Maya"},
    ]
    assert message["references"] == [{"type": "project", "id": "p1", "name": "Launch"}]
    assert isinstance(message["createdAt"], datetime)

    notifications = list(store.docs("notifications").values())
    assert len(notifications) == 1
    assert notifications[0]["userId"] == "u2"
    assert notifications[0]["title"] == MENTION_TITLE
    assert notifications[0]["type"] == "chat"
    assert [m.content for m in engine.messages] == ["hello @Ali and @Maya see #project:Launch"]


@pytest.mark.asyncio
async def test_blank_message_is_rejected_without_a_write():
    store = FakeDocumentStore()
    engine = _engine(store)
    await engine.start(ME)

    assert await engine.send("   ") is False
    assert store.docs("chatMessages") == {}


@pytest.mark.asyncio
async def test_send_without_session_is_rejected():
    store = FakeDocumentStore()
    engine = _engine(store)

    assert await engine.send("hello") is False
    assert store.docs("chatMessages") == {}


@pytest.mark.asyncio
async def test_failed_send_returns_false():
    store = FakeDocumentStore()
    store.fail_writes.add("chatMessages")
    engine = _engine(store)
    await engine.start(ME)

    assert await engine.send("hello", [Mention("u2", "Ali")]) is False
    assert store.docs("notifications") == {}


@pytest.mark.asyncio
async def test_failed_mention_notification_keeps_message():
    store = FakeDocumentStore()
    store.fail_writes.add("notifications")
    engine = _engine(store)
    await engine.start(ME)

    assert await engine.send("hi @Ali", [Mention("u2", "Ali")]) is True
    assert len(store.docs("chatMessages")) == 1


@pytest.mark.asyncio
async def test_lookup_failures_are_independent():
    store = FakeDocumentStore()
    _seed_lookups(store)
    store.fail_reads.add("videos")
    engine = _engine(store)

    await engine.start(ME)

    assert len(engine.users) == 2
    assert engine.catalogs[ReferenceType.VIDEO] == []
    assert len(engine.catalogs[ReferenceType.PROJECT]) == 2


@pytest.mark.asyncio
async def test_navigate_closes_panel_and_returns_route():
    store = FakeDocumentStore()
    engine = _engine(store)
    await engine.start(ME)
    engine.open()

    route = engine.navigate_to_reference(Reference(ReferenceType.VIDEO, "v9", "Shoes"))

    assert route == "/videos/v9"
    assert not engine.is_open


@pytest.mark.asyncio
async def test_stop_forgets_session_state():
    store = FakeDocumentStore()
    _seed_messages(store, 2)
    publisher = RecordingPublisher()
    engine = _engine(store, publisher=publisher)
    await engine.start(ME)
    assert publisher.of_type("chat_update")

    engine.stop()

    assert engine.status is ChatStatus.STOPPED
    assert engine.messages == []
    assert engine.unread_count == 0
    assert store.subscription_count == 0
