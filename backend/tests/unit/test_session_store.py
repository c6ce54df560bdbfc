"""Unit tests for the SessionStore."""

import json

import pytest

from fakes import FakeDocumentStore, FakeLocalStorage
from studio_tracker.application.services import SessionStore
from studio_tracker.application.services.session_store import (
    ACCOUNT_DEACTIVATED,
    INVALID_CREDENTIALS,
    LOGIN_FAILED,
    SESSION_KEY,
)
from studio_tracker.domain.entities import Session
from studio_tracker.domain.exceptions import AuthenticationError


def _store_with_users() -> FakeDocumentStore:
    store = FakeDocumentStore()
    store.seed("users", "u1", {
        "email": "editor@studio.test", "password": "secret", "name": "Eddie",
        "role": "editor", "isActive": True,
    })
    store.seed("users", "u2", {
        "email": "boss@studio.test", "password": "admin", "name": "Bo", "role": "admin",
    })
    store.seed("users", "u3", {
        "email": "gone@studio.test", "password": "pw", "name": "Gone", "isActive": False,
    })
    return store


# ── Tests ──


@pytest.mark.asyncio
async def test_login_persists_session_and_notifies_listeners():
    storage = FakeLocalStorage()
    sessions = SessionStore(_store_with_users(), storage)
    seen: list[Session | None] = []

    async def listener(session: Session | None) -> None:
        seen.append(session)

    sessions.add_listener(listener)

    result = await sessions.login("  Editor@Studio.test ", "secret")

    assert result.success
    assert result.session.id == "u1"
    assert result.session.role == "editor"
    assert sessions.is_authenticated
    assert not sessions.is_admin
    assert json.loads(storage.items[SESSION_KEY])["id"] == "u1"
    assert seen == [result.session]


@pytest.mark.asyncio
async def test_admin_role_sets_admin_flag():
    sessions = SessionStore(_store_with_users(), FakeLocalStorage())

    result = await sessions.login("boss@studio.test", "admin")

    assert result.session.is_admin
    assert sessions.is_admin
    assert sessions.has_permission("manage-users")


@pytest.mark.parametrize(
    ("email", "password", "error"),
    [
        ("nobody@studio.test", "x", INVALID_CREDENTIALS),
        ("editor@studio.test", "wrong", INVALID_CREDENTIALS),
        ("gone@studio.test", "pw", ACCOUNT_DEACTIVATED),
    ],
)
@pytest.mark.asyncio
async def test_login_failures(email, password, error):
    storage = FakeLocalStorage()
    sessions = SessionStore(_store_with_users(), storage)

    result = await sessions.login(email, password)

    assert not result.success
    assert result.error == error
    assert sessions.session is None
    assert SESSION_KEY not in storage.items


@pytest.mark.asyncio
async def test_login_store_error_is_generic_failure():
    store = _store_with_users()
    store.fail_reads.add("users")
    sessions = SessionStore(store, FakeLocalStorage())

    result = await sessions.login("editor@studio.test", "secret")

    assert result.error == LOGIN_FAILED


@pytest.mark.asyncio
async def test_restore_reads_persisted_session():
    saved = Session(id="u1", email="e@s.test", name="Eddie", role="editor")
    storage = FakeLocalStorage({SESSION_KEY: json.dumps(saved.to_dict())})
    sessions = SessionStore(FakeDocumentStore(), storage)

    restored = await sessions.restore()

    assert restored == saved
    assert sessions.has_permission("videos")
    assert not sessions.has_permission("scripts")


@pytest.mark.asyncio
async def test_restore_discards_corrupt_session():
    storage = FakeLocalStorage({SESSION_KEY: "{not json"})
    sessions = SessionStore(FakeDocumentStore(), storage)

    assert await sessions.restore() is None
    assert SESSION_KEY not in storage.items


@pytest.mark.asyncio
async def test_logout_clears_storage():
    storage = FakeLocalStorage()
    sessions = SessionStore(_store_with_users(), storage)
    await sessions.login("editor@studio.test", "secret")

    await sessions.logout()

    assert sessions.session is None
    assert SESSION_KEY not in storage.items
    assert not sessions.has_permission("dashboard")


@pytest.mark.asyncio
async def test_update_user_applies_only_to_same_user():
    storage = FakeLocalStorage()
    sessions = SessionStore(_store_with_users(), storage)
    await sessions.login("boss@studio.test", "admin")

    unchanged = await sessions.update_user({"id": "u1", "name": "Other"})
    assert unchanged.name == "Bo"

    updated = await sessions.update_user({"id": "u2", "name": "Boss", "role": "editor"})
    assert updated.name == "Boss"
    assert updated.role == "editor"
    assert not updated.is_admin
    assert json.loads(storage.items[SESSION_KEY])["name"] == "Boss"


@pytest.mark.asyncio
async def test_failing_listener_does_not_break_login():
    sessions = SessionStore(_store_with_users(), FakeLocalStorage())

    async def broken(session: Session | None) -> None:
        raise RuntimeError("boom")

    sessions.add_listener(broken)

    result = await sessions.login("editor@studio.test", "secret")

    assert result.success
    assert sessions.session is not None


@pytest.mark.asyncio
async def test_require_session_raises_until_signed_in():
    store = SessionStore(_store_with_users(), FakeLocalStorage())

    with pytest.raises(AuthenticationError):
        store.require_session()

    await store.login("editor@studio.test", "secret")
    assert store.require_session().id == "u1"
