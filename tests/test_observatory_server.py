import asyncio
from datetime import datetime, timezone

import pytest
from aiohttp.test_utils import TestClient, TestServer

from corenet.observatory.config import default_config
from corenet.observatory.hub import Event, Hub
from corenet.observatory.server import Server
from corenet.observatory.topology import Poller


class FakeUEs:
    def __init__(self):
        self.records = [{"id": "UE-001", "imsi": "001010000000001", "state": "REGISTERED"}]
        self.stopped = []

    async def list(self):
        return list(self.records)

    async def spawn(self, raw):
        if raw.strip() == b"bad":
            raise ValueError("bad body")
        rec = {"id": "UE-002", "imsi": "001010000000002", "state": "STARTING"}
        self.records.append(rec)
        return rec

    def stop(self, ue_id):
        if ue_id not in {r["id"] for r in self.records}:
            raise LookupError(f"ue {ue_id} not found")
        self.stopped.append(ue_id)


def _server(ues=None, static_dir=None, hub=None):
    cfg = default_config()
    hub = hub or Hub(50)
    return Server(cfg, hub, Poller(cfg), ues, static_dir)


@pytest.mark.asyncio
async def test_ingest_and_websocket():
    srv = _server()
    async with TestClient(TestServer(srv.app())) as client:
        ws = await client.ws_connect("/ws")
        snap = await ws.receive_json(timeout=2)
        assert snap["type"] == "snapshot"

        ev = Event(id="test-1", kind="procedure", source="gNB", target="AMF",
                   type="NGSetupRequest", spec="TS 38.413", ts=datetime.now(timezone.utc))
        resp = await client.post("/api/v1/events", json=ev.to_dict())
        assert resp.status == 202

        loop = asyncio.get_running_loop()
        deadline = loop.time() + 2
        received = None
        while loop.time() < deadline:
            msg = await ws.receive_json(timeout=2)
            if msg["type"] == "event":
                received = msg
                break
        await ws.close()
    assert received is not None
    assert received["event"]["id"] == "test-1"
    assert received["event"]["from"] == "gNB"


@pytest.mark.asyncio
async def test_snapshot_carries_buffered_messages_and_ues():
    hub = Hub(10)
    hub.add(Event(id="early", kind="procedure"))
    srv = _server(ues=FakeUEs(), hub=hub)
    async with TestClient(TestServer(srv.app())) as client:
        ws = await client.ws_connect("/ws")
        snap = await ws.receive_json(timeout=2)
        await ws.close()
    assert [m["id"] for m in snap["messages"]] == ["early"]
    assert snap["ues"][0]["id"] == "UE-001"
    assert snap["topology"]["total"] == 0


@pytest.mark.asyncio
async def test_messages_limit_and_event_id_fill():
    srv = _server()
    async with TestClient(TestServer(srv.app())) as client:
        for kind in ("a", "b", "c"):
            resp = await client.post("/api/v1/events", json={"kind": kind})
            assert resp.status == 202
        resp = await client.get("/api/v1/messages", params={"limit": "2"})
        body = await resp.json()
        all_resp = await client.get("/api/v1/messages", params={"limit": "x"})
        all_body = await all_resp.json()
    assert [m["kind"] for m in body] == ["b", "c"]
    assert len(all_body) == 3
    assert all(m["id"] and m["ts"] for m in all_body)


@pytest.mark.asyncio
async def test_bad_event_and_wrong_methods():
    srv = _server()
    async with TestClient(TestServer(srv.app())) as client:
        bad = await client.post("/api/v1/events", data=b"{not json")
        get_events = await client.get("/api/v1/events")
        post_topo = await client.post("/api/v1/topology")
        put_ues = await client.put("/api/v1/ues")
        statuses = (bad.status, get_events.status, post_topo.status, put_ues.status)
        text = await get_events.text()
    assert statuses == (400, 405, 405, 405)
    assert text == "method not allowed\n"


@pytest.mark.asyncio
async def test_topology_and_status():
    srv = _server()
    srv.hub.add(Event(id="one"))
    async with TestClient(TestServer(srv.app())) as client:
        topo = await (await client.get("/api/v1/topology")).json()
        status = await (await client.get("/api/v1/status")).json()
    assert topo["total"] == 0
    assert status["messages"] == 1
    assert status["uptime"].endswith("s")
    assert status["topology"] == topo


@pytest.mark.asyncio
async def test_ues_routes_with_manager():
    ues = FakeUEs()
    srv = _server(ues=ues)
    async with TestClient(TestServer(srv.app())) as client:
        created = await client.post("/api/v1/ues", data=b"{}")
        created_body = await created.json()
        bad = await client.post("/api/v1/ues", data=b"bad")
        listed = await (await client.get("/api/v1/ues")).json()
        deleted = await client.delete("/api/v1/ues/UE-001")
        missing = await client.delete("/api/v1/ues/UE-999")
        empty = await client.delete("/api/v1/ues/")
        statuses = (created.status, bad.status, deleted.status, missing.status, empty.status)
    assert statuses == (201, 400, 204, 404, 400)
    assert created_body["id"] == "UE-002"
    assert [u["id"] for u in listed["ues"]] == ["UE-001", "UE-002"]
    assert ues.stopped == ["UE-001"]


@pytest.mark.asyncio
async def test_ues_without_manager():
    srv = _server()
    async with TestClient(TestServer(srv.app())) as client:
        listed = await (await client.get("/api/v1/ues")).json()
        deleted = await client.delete("/api/v1/ues/UE-001")
    assert listed == {"ues": []}
    assert deleted.status == 404


@pytest.mark.asyncio
async def test_root_without_ui():
    srv = _server()
    async with TestClient(TestServer(srv.app())) as client:
        resp = await client.get("/")
        text = await resp.text()
    assert resp.status == 404
    assert "UI not embedded" in text


@pytest.mark.asyncio
async def test_static_files_are_served(tmp_path):
    (tmp_path / "index.html").write_text("<h1>ui</h1>")
    (tmp_path / "app.js").write_text("console.log(1)")
    srv = _server(static_dir=tmp_path)
    async with TestClient(TestServer(srv.app())) as client:
        index = await client.get("/")
        index_text = await index.text()
        script = await client.get("/app.js")
        script_text = await script.text()
        missing = await client.get("/nope.css")
        missing_status = missing.status
    assert index_text == "<h1>ui</h1>"
    assert script_text == "console.log(1)"
    assert missing_status == 404