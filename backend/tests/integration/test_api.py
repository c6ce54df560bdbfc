"""API tests — the v1 routers against a runtime backed by in-memory fakes."""

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from fakes import FakeDocumentStore, FakeLocalStorage, RecordingPublisher
from studio_tracker.application.services import StudioRuntime
from studio_tracker.application.services.session_store import INVALID_CREDENTIALS
from studio_tracker.infrastructure.cloudinary.cloudinary_uploader import CloudinaryUploader
from studio_tracker.infrastructure.dependencies import set_runtime
from studio_tracker.infrastructure.notifications.browser_notifier import BrowserNotifier
from studio_tracker.main import app

HOSTED = "https://res.cloudinary.com/demo/image/upload/v1/uploads/cat.jpg"


def _cloudinary_transport() -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"secure_url": HOSTED, "public_id": "uploads/cat"})

    return httpx.MockTransport(handler)


@pytest.fixture
def store() -> FakeDocumentStore:
    store = FakeDocumentStore()
    store.seed("users", "u1", {
        "email": "maya@studio.test", "password": "secret", "name": "Maya", "role": "admin",
    })
    store.seed("users", "u2", {
        "email": "ali@studio.test", "password": "pw", "name": "Ali", "role": "editor",
    })
    return store


@pytest.fixture
def runtime(store: FakeDocumentStore):
    publisher = RecordingPublisher()
    runtime = StudioRuntime(
        store,
        FakeLocalStorage(),
        publisher,
        uploader=CloudinaryUploader(
            cloud_name="demo",
            upload_preset="unsigned",
            http_client=httpx.AsyncClient(transport=_cloudinary_transport()),
        ),
        native_notifier=BrowserNotifier(publisher),
    )
    set_runtime(runtime)
    yield runtime
    set_runtime(None)


def _client() -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


async def _login(client: AsyncClient, email: str = "maya@studio.test", password: str = "secret") -> None:
    response = await client.post("/api/v1/session/login", json={"email": email, "password": password})
    assert response.status_code == 200


# ── Health and session ──


@pytest.mark.asyncio
async def test_health_check_returns_200():
    """Health endpoint should return 200 with status, version, and environment."""
    async with _client() as client:
        response = await client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert "environment" in data


@pytest.mark.asyncio
async def test_health_reports_runtime_state(runtime):
    async with _client() as client:
        data = (await client.get("/api/v1/health")).json()

    assert data["signed_in"] is False
    assert data["caches"]["projects"]["state"] == "unfetched"
    assert data["notifications"] == "unsubscribed"


@pytest.mark.asyncio
async def test_endpoints_need_a_runtime():
    async with _client() as client:
        response = await client.get("/api/v1/session")

    assert response.status_code == 503


@pytest.mark.asyncio
async def test_login_logout_cycle(runtime):
    async with _client() as client:
        assert (await client.get("/api/v1/session")).status_code == 401

        bad = await client.post(
            "/api/v1/session/login", json={"email": "maya@studio.test", "password": "nope"}
        )
        assert bad.status_code == 401
        assert bad.json()["detail"] == INVALID_CREDENTIALS

        await _login(client)
        session = (await client.get("/api/v1/session")).json()
        assert session["name"] == "Maya"
        assert session["is_admin"] is True
        assert "manage-users" in session["permissions"]
        assert runtime.notifications.status.value == "live"
        assert runtime.chat.status.value == "live"

        allowed = (await client.get("/api/v1/session/permissions/reports")).json()
        assert allowed == {"tab": "reports", "allowed": True}

        assert (await client.post("/api/v1/session/logout")).status_code == 204
        assert (await client.get("/api/v1/session")).status_code == 401
        assert runtime.notifications.status.value == "unsubscribed"


# ── Data ──


@pytest.mark.asyncio
async def test_data_requires_sign_in(runtime):
    async with _client() as client:
        response = await client.get("/api/v1/data/projects")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_and_list_projects(runtime, store):
    async with _client() as client:
        await _login(client)

        created = await client.post(
            "/api/v1/data/projects", json={"name": "Launch", "clientName": "Acme"}
        )
        assert created.status_code == 201
        project = created.json()
        assert project["display_name"] == "Launch"
        assert project["data"]["clientName"] == "Acme"

        listed = (await client.get("/api/v1/data/projects")).json()
        assert [p["id"] for p in listed] == [project["id"]]
        assert store.reads["projects"] == 0

        cache = (await client.get("/api/v1/data/cache")).json()
        assert cache["projects"] == {"state": "populated", "count": 1}

        feed = (await client.get("/api/v1/notifications")).json()
        assert feed["unread_count"] == 1
        assert feed["notifications"][0]["title"] == "📁 New Project Created"


@pytest.mark.asyncio
async def test_update_delete_and_bulk(runtime, store):
    for n in range(1, 4):
        store.seed("videos", f"v{n}", {"videoName": f"Video {n}", "shootDay": f"2024-01-0{n}"})

    async with _client() as client:
        await _login(client)
        assert len((await client.get("/api/v1/data/videos")).json()) == 3

        patched = await client.patch("/api/v1/data/videos/v1", json={"shootStatus": "Done"})
        assert patched.status_code == 200
        assert patched.json()["data"]["shootStatus"] == "Done"

        missing = await client.patch("/api/v1/data/videos/ghost", json={"shootStatus": "Done"})
        assert missing.status_code == 404

        bulk = await client.post(
            "/api/v1/data/videos/bulk-update",
            json={"ids": ["v1", "v2"], "changes": {"shootStatus": "Scheduled"}},
        )
        assert bulk.json() == {"affected": 2}

        deleted = await client.post("/api/v1/data/videos/bulk-delete", json={"ids": ["v1", "v2"]})
        assert deleted.json() == {"affected": 2}
        assert (await client.delete("/api/v1/data/videos/v3")).status_code == 204

        assert (await client.get("/api/v1/data/videos")).json() == []
        assert store.reads["videos"] == 1


@pytest.mark.asyncio
async def test_failed_bulk_delete_is_502(runtime, store):
    store.seed("projects", "p1", {"name": "Keep"})
    store.fail_batches = True

    async with _client() as client:
        await _login(client)
        response = await client.post("/api/v1/data/projects/bulk-delete", json={"ids": ["p1"]})

    assert response.status_code == 502
    assert "p1" in store.docs("projects")


@pytest.mark.asyncio
async def test_clients_are_not_an_entity_route(runtime, store):
    store.seed("clients", "c1", {"name": "Acme"})

    async with _client() as client:
        await _login(client)
        assert (await client.get("/api/v1/data/clients")).json() == ["Acme"]
        assert (await client.get("/api/v1/data/clients/c1")).status_code == 400


# ── Notifications ──


@pytest.mark.asyncio
async def test_notification_actions(runtime, store):
    store.seed("notifications", "n1", {"userId": "u1", "title": "A", "read": False, "link": "/videos"})
    store.seed("notifications", "n2", {"userId": "u1", "title": "B", "read": False})

    async with _client() as client:
        await _login(client)

        opened = await client.post("/api/v1/notifications/n1/open")
        assert opened.json() == {"link": "/videos"}
        assert (await client.get("/api/v1/notifications")).json()["unread_count"] == 1

        assert (await client.post("/api/v1/notifications/read-all")).json() == {"success": True}
        assert (await client.delete("/api/v1/notifications")).json() == {"success": True}
        assert (await client.get("/api/v1/notifications")).json()["notifications"] == []


@pytest.mark.asyncio
async def test_notification_permission_round_trip(runtime):
    async with _client() as client:
        assert (await client.get("/api/v1/notifications/permission")).json() == {"permission": "default"}

        updated = await client.put("/api/v1/notifications/permission", json={"permission": "granted"})
        assert updated.json() == {"permission": "granted"}

        invalid = await client.put("/api/v1/notifications/permission", json={"permission": "maybe"})
        assert invalid.status_code == 422


# ── Chat ──


@pytest.mark.asyncio
async def test_chat_send_and_render(runtime, store):
    store.seed("projects", "p1", {"name": "Launch"})

    async with _client() as client:
        await _login(client)

        empty = await client.post("/api/v1/chat/messages", json={"content": "   "})
        assert empty.status_code == 422

        sent = await client.post("/api/v1/chat/messages", json={
            "content": "cut ready @Ali see #project:Launch",
            "mentions": [{"user_id": "u2", "user_name": "Ali"}],
            "references": [{"type": "project", "id": "p1", "name": "Launch"}],
        })
        assert sent.status_code == 201

        [message] = (await client.get("/api/v1/chat/messages")).json()
        reference = message["segments"][-1]
        assert reference["type"] == "reference"
        assert reference["route"] == "/projects/p1"

        mentions = [n for n in store.docs("notifications").values() if n["type"] == "chat"]
        assert [n["userId"] for n in mentions] == ["u2"]

        state = (await client.post("/api/v1/chat/open")).json()
        assert state["is_open"] is True
        assert state["unread_count"] == 0

        route = await client.post(
            "/api/v1/chat/navigate", json={"type": "project", "id": "p1", "name": "Launch"}
        )
        assert route.json() == {"route": "/projects/p1"}
        assert (await client.get("/api/v1/chat")).json()["is_open"] is False


@pytest.mark.asyncio
async def test_compose_pickers(runtime, store):
    store.seed("projects", "p1", {"name": "Launch"})

    async with _client() as client:
        await _login(client)

        mention = (await client.post("/api/v1/chat/compose", json={"text": "hi @Al"})).json()
        assert mention["picker"] == "mention"
        assert [u["name"] for u in mention["users"]] == ["Ali"]

        selected = (await client.post(
            "/api/v1/chat/compose/select", json={"text": "hi @Al", "user_id": "u2"}
        )).json()
        assert selected["text"] == "hi @Ali "
        assert selected["mentions"] == [{"user_id": "u2", "user_name": "Ali"}]

        reference = (await client.post(
            "/api/v1/chat/compose", json={"text": "see #La", "reference_type": "project"}
        )).json()
        assert reference["picker"] == "reference"
        assert [i["name"] for i in reference["items"]] == ["Launch"]

        picked = (await client.post("/api/v1/chat/compose/select", json={
            "text": "see #La", "reference_type": "project", "item_id": "p1",
        })).json()
        assert picked["text"] == "see #project:Launch "

        wrong = await client.post(
            "/api/v1/chat/compose/select", json={"text": "plain", "user_id": "u2"}
        )
        assert wrong.status_code == 409


@pytest.mark.asyncio
async def test_render_without_sending(runtime):
    async with _client() as client:
        await _login(client)
        segments = (await client.post("/api/v1/chat/render", json={
            "content": "see #video:Promo",
            "references": [],
        })).json()

    assert segments[-1]["type"] == "reference"
    assert segments[-1]["reference"] is None


# ── Media ──


@pytest.mark.asyncio
async def test_media_upload_and_transform(runtime):
    async with _client() as client:
        await _login(client)

        uploaded = await client.post(
            "/api/v1/media/upload",
            files={"file": ("cat.jpg", b"\xff\xd8 jpeg", "image/jpeg")},
            data={"folder": "avatars"},
        )
        assert uploaded.status_code == 201
        assert uploaded.json()["url"] == HOSTED

        transformed = (await client.get(
            "/api/v1/media/transform", params={"url": HOSTED, "width": 300}
        )).json()
        assert "w_300" in transformed["optimized_url"]
        assert "w_150,h_150" in transformed["thumbnail_url"]


@pytest.mark.asyncio
async def test_script_for_missing_video_is_created(runtime, store):
    async with _client() as client:
        await _login(client)
        created = await client.post(
            "/api/v1/data/scripts", json={"clientName": "Acme", "relatedVideoId": "ghost"}
        )

    assert created.status_code == 201
    assert created.json()["id"] in store.docs("scripts")
    assert "ghost" not in store.docs("videos")
    assigned = [n for n in store.docs("notifications").values() if n["type"] != "chat"]
    assert sorted(n["userId"] for n in assigned) == ["u1", "u2"]


@pytest.mark.asyncio
async def test_store_assigned_timestamps_cannot_be_patched(runtime, store):
    store.seed("projects", "p1", {"name": "Launch"})

    async with _client() as client:
        await _login(client)
        patched = await client.patch("/api/v1/data/projects/p1", json={"createdAt": "yesterday"})
        bulk = await client.post(
            "/api/v1/data/projects/bulk-update",
            json={"ids": ["p1"], "changes": {"updatedAt": 0}},
        )

    assert patched.status_code == 422
    assert bulk.status_code == 422
    assert "createdAt" not in store.docs("projects")["p1"]
