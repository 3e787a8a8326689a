"""
Assistant proxy tests — session start, message forwarding and the session
store, with the dialogue service replaced by an httpx MockTransport.
"""
import base64
import json

import httpx
import pytest
from httpx import AsyncClient

from app.assistant import AssistantClient, assistant
from app.main import app, lifespan
from app.session_store import SessionStore, sessions


def _fake_assistant(calls: list, session_ids=("sess-1", "sess-2", "sess-3")):
    """Handler emulating the two dialogue-service endpoints."""
    pending = list(session_ids)

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if request.url.path.endswith("/sessions"):
            return httpx.Response(201, json={"session_id": pending.pop(0)})
        if request.url.path.endswith("/message"):
            text = json.loads(request.content)["input"]["text"]
            session_id = request.url.path.split("/")[-2]
            return httpx.Response(200, json={
                "output": {"generic": [{"response_type": "text", "text": f"{session_id}: {text}"}]},
                "context": {},
            })
        return httpx.Response(404)

    return handler


def _reply(resp: httpx.Response) -> str:
    return resp.json()["generic"][0]["text"]


# ---------------------------------------------------------------------------
# /api/session
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_session(async_client: AsyncClient, assistant_transport):
    calls = []
    assistant_transport(_fake_assistant(calls))

    resp = await async_client.get("/api/session")
    assert resp.status_code == 200
    assert resp.json() == {"sessionId": "sess-1"}
    assert await sessions.exists("sess-1")

    request = calls[0]
    assert request.method == "POST"
    assert request.url.path == f"/v2/assistants/{assistant.assistant_id}/sessions"
    assert request.url.params["version"] == assistant.version
    credentials = base64.b64encode(f"apikey:{assistant.apikey}".encode()).decode()
    assert request.headers["authorization"] == f"Basic {credentials}"


@pytest.mark.asyncio
async def test_create_session_upstream_failure(async_client: AsyncClient, assistant_transport):
    assistant_transport(lambda request: httpx.Response(503, json={"error": "down"}))

    resp = await async_client.get("/api/session")
    assert resp.status_code == 500
    assert "down" not in resp.text


@pytest.mark.asyncio
async def test_create_session_connection_error(async_client: AsyncClient, assistant_transport):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    assistant_transport(handler)

    resp = await async_client.get("/api/session")
    assert resp.status_code == 500


# ---------------------------------------------------------------------------
# /api/message
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_message_forwarded_and_output_returned(async_client: AsyncClient, assistant_transport):
    calls = []
    assistant_transport(_fake_assistant(calls))
    session_id = (await async_client.get("/api/session")).json()["sessionId"]

    resp = await async_client.post("/api/message", json={"message": "hello", "sessionId": session_id})
    assert resp.status_code == 200
    assert _reply(resp) == "sess-1: hello"

    sent = json.loads(calls[-1].content)
    assert sent == {"input": {"message_type": "text", "text": "hello"}}


@pytest.mark.asyncio
async def test_message_without_session(async_client: AsyncClient, assistant_transport):
    calls = []
    assistant_transport(_fake_assistant(calls))

    resp = await async_client.post("/api/message", json={"message": "hello"})
    assert resp.status_code == 400
    assert "Session not started" in resp.json()["detail"]
    assert calls == []


@pytest.mark.asyncio
async def test_message_with_unknown_session(async_client: AsyncClient, assistant_transport):
    calls = []
    assistant_transport(_fake_assistant(calls))

    resp = await async_client.post("/api/message", json={"message": "hi", "sessionId": "forged"})
    assert resp.status_code == 400
    assert calls == []


@pytest.mark.asyncio
async def test_concurrent_sessions_do_not_interfere(async_client: AsyncClient, assistant_transport):
    """A second session start does not redirect the first conversation."""
    assistant_transport(_fake_assistant([]))
    first = (await async_client.get("/api/session")).json()["sessionId"]
    second = (await async_client.get("/api/session")).json()["sessionId"]
    assert first != second

    resp_first = await async_client.post("/api/message", json={"message": "a", "sessionId": first})
    resp_second = await async_client.post("/api/message", json={"message": "b", "sessionId": second})

    assert _reply(resp_first) == f"{first}: a"
    assert _reply(resp_second) == f"{second}: b"


@pytest.mark.asyncio
async def test_expired_upstream_session_is_discarded(async_client: AsyncClient, assistant_transport):
    def handler(request):
        if request.url.path.endswith("/sessions"):
            return httpx.Response(201, json={"session_id": "gone"})
        return httpx.Response(404, json={"error": "Invalid Session"})

    assistant_transport(handler)
    await async_client.get("/api/session")

    resp = await async_client.post("/api/message", json={"message": "hi", "sessionId": "gone"})
    assert resp.status_code == 400
    assert not await sessions.exists("gone")


@pytest.mark.asyncio
async def test_message_upstream_failure(async_client: AsyncClient, assistant_transport):
    def handler(request):
        if request.url.path.endswith("/sessions"):
            return httpx.Response(201, json={"session_id": "s"})
        return httpx.Response(500, text="internal upstream detail")

    assistant_transport(handler)
    await async_client.get("/api/session")

    resp = await async_client.post("/api/message", json={"message": "hi", "sessionId": "s"})
    assert resp.status_code == 500
    assert "upstream detail" not in resp.text
    # A transient failure does not end the session.
    assert await sessions.exists("s")


# ---------------------------------------------------------------------------
# AssistantClient lifecycle
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_client_is_shared_across_calls(async_client: AsyncClient, assistant_transport):
    assistant_transport(_fake_assistant([]))
    shared = assistant.http

    session_id = (await async_client.get("/api/session")).json()["sessionId"]
    await async_client.post("/api/message", json={"message": "hi", "sessionId": session_id})

    assert assistant.http is shared
    assert not shared.is_closed


@pytest.mark.asyncio
async def test_client_open_is_idempotent_and_close_releases():
    client = AssistantClient(url="http://assistant.test", apikey="k", assistant_id="a")
    client.open()
    first = client.http
    client.open()
    assert client.http is first

    await client.close()
    assert first.is_closed
    # Reopened lazily on next use.
    assert client.http is not first
    await client.close()


@pytest.mark.asyncio
async def test_lifespan_opens_and_closes_client(monkeypatch):
    async def no_redis():
        return None

    monkeypatch.setattr(sessions, "connect", no_redis)
    monkeypatch.setattr(sessions, "disconnect", no_redis)
    await assistant.close()
    async with lifespan(app):
        opened = assistant._http
        assert opened is not None
    assert opened.is_closed
    assert assistant._http is None


# ---------------------------------------------------------------------------
# SessionStore (in-process mode)
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_session_store_register_and_discard():
    store = SessionStore(ttl=60)
    assert not await store.exists("a")
    await store.register("a")
    assert await store.exists("a")
    await store.discard("a")
    assert not await store.exists("a")


@pytest.mark.asyncio
async def test_session_store_expiry():
    clock = [1000.0]
    store = SessionStore(ttl=10)
    store._clock = lambda: clock[0]
    await store.register("a")
    clock[0] += 5
    await store.touch("a")
    clock[0] += 9
    assert await store.exists("a")
    clock[0] += 2
    assert not await store.exists("a")


@pytest.mark.asyncio
async def test_session_store_falls_back_when_redis_fails():
    class BrokenRedis:
        async def set(self, *args, **kwargs):
            raise ConnectionError("redis down")

        async def exists(self, *args, **kwargs):
            raise ConnectionError("redis down")

    store = SessionStore(ttl=60)
    store._redis = BrokenRedis()
    await store.register("a")
    assert await store.exists("a")


@pytest.mark.asyncio
async def test_session_store_sweeps_expired_handles_on_register():
    clock = [1000.0]
    store = SessionStore(ttl=1)
    store._clock = lambda: clock[0]
    for n in range(1000):
        await store.register(f"old-{n}")
    clock[0] += 2

    await store.register("fresh")
    assert list(store._local) == ["fresh"]


class _RecoveringRedis:
    """Redis stand-in that is down until ``up`` is set, then starts empty."""

    def __init__(self):
        self.up = False
        self.keys: set[str] = set()

    def _check(self):
        if not self.up:
            raise ConnectionError("redis down")

    async def set(self, key, value, ex=None):
        self._check()
        self.keys.add(key)

    async def exists(self, key):
        self._check()
        return int(key in self.keys)

    async def expire(self, key, ttl):
        self._check()
        return key in self.keys

    async def delete(self, key):
        self._check()
        self.keys.discard(key)


@pytest.mark.asyncio
async def test_session_store_keeps_outage_handles_after_redis_recovers():
    clock = [1000.0]
    store = SessionStore(ttl=10)
    store._clock = lambda: clock[0]
    fake = _RecoveringRedis()
    store._redis = fake

    await store.register("abc")
    fake.up = True
    assert await store.exists("abc")

    # Touching refreshes the local entry because Redis does not know the key.
    clock[0] += 8
    await store.touch("abc")
    clock[0] += 8
    assert await store.exists("abc")

    await store.discard("abc")
    assert not await store.exists("abc")


@pytest.mark.asyncio
async def test_session_store_prefers_redis_when_available():
    store = SessionStore(ttl=10)
    fake = _RecoveringRedis()
    fake.up = True
    store._redis = fake

    await store.register("r")
    assert "assistant:session:r" in fake.keys
    assert store._local == {}
    assert await store.exists("r")
