"""Observatory HTTP API, WebSocket feed and static UI."""

from __future__ import annotations

import asyncio
import dataclasses
import inspect
import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from aiohttp import WSMsgType, web

from corenet.nrf.types import _format_time
from corenet.observatory.config import Config
from corenet.observatory.hub import Event, Hub
from corenet.observatory.topology import Poller

log = logging.getLogger(__name__)

_NO_UI = "UI not embedded — run npm run build in web/observatory"


def _http_error(status: int, text: str) -> web.Response:
    return web.Response(status=status, text=text + "\n", content_type="text/plain")


def _method_not_allowed() -> web.Response:
    return _http_error(405, "method not allowed")


def _jsonable(obj: Any) -> Any:
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    return obj


def _write_json(obj: Any, status: int = 200) -> web.Response:
    text = json.dumps(obj, indent=2, ensure_ascii=False, default=str) + "\n"
    return web.Response(status=status, text=text, content_type="application/json")


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _format_fraction(whole: int, frac: int, digits: int) -> str:
    tail = f"{frac:0{digits}d}".rstrip("0")
    return f"{whole}.{tail}" if tail else str(whole)


def _format_duration(seconds: float) -> str:
    """Render a duration the way the source's log and API format it (e.g. 1h2m3.5s)."""
    ns = int(round(seconds * 1e9))
    if ns == 0:
        return "0s"
    sign = "-" if ns < 0 else ""
    ns = abs(ns)
    if ns < 1_000:
        return f"{sign}{ns}ns"
    if ns < 1_000_000:
        return f"{sign}{_format_fraction(*divmod(ns, 1_000), 3)}µs"
    if ns < 1_000_000_000:
        return f"{sign}{_format_fraction(*divmod(ns, 1_000_000), 6)}ms"
    hours, rem = divmod(ns, 3_600_000_000_000)
    minutes, rem = divmod(rem, 60_000_000_000)
    out = sign
    if hours:
        out += f"{hours}h"
    if hours or minutes:
        out += f"{minutes}m"
    return out + _format_fraction(*divmod(rem, 1_000_000_000), 9) + "s"


class Server:
    """Observatory HTTP server.

    ``ues`` is an optional UE manager offering ``list()``, ``spawn(raw_body)``
    and ``stop(ue_id)`` (plain or coroutine methods). ``static_dir`` holds the
    built web UI.
    """

    def __init__(
        self,
        cfg: Config,
        hub: Hub,
        poller: Poller,
        ues: Any = None,
        static_dir: str | Path | None = None,
        topology_interval: float = 3.0,
    ) -> None:
        self.cfg = cfg
        self.hub = hub
        self.poller = poller
        self.ues = ues
        self.static_dir = Path(static_dir) if static_dir is not None else None
        self.topology_interval = topology_interval
        self.started = datetime.now(timezone.utc)
        self._started_mono = time.monotonic()

    def _uptime(self) -> float:
        return time.monotonic() - self._started_mono

    def app(self) -> web.Application:
        """Build the aiohttp application with all routes."""
        app = web.Application()
        r = app.router
        r.add_route("*", "/api/v1/events", self._handle_events)
        r.add_route("*", "/api/v1/messages", self._handle_messages)
        r.add_route("*", "/api/v1/topology", self._handle_topology)
        r.add_route("*", "/api/v1/ues", self._handle_ues)
        r.add_route("*", "/api/v1/ues/{ue_id:.*}", self._handle_ue_by_id)
        r.add_route("*", "/api/v1/status", self._handle_status)
        r.add_get("/ws", self._handle_websocket)
        r.add_route("*", "/{tail:.*}", self._handle_static)
        return app

    # --- REST handlers ---

    async def _handle_events(self, request: web.Request) -> web.Response:
        if request.method != "POST":
            return _method_not_allowed()
        raw = await request.read()
        try:
            ev = Event.from_dict(json.loads(raw))
        except (ValueError, TypeError) as exc:
            return _http_error(400, str(exc))
        if not ev.id:
            ev.id = str(time.time_ns())
        if ev.ts is None:
            ev.ts = datetime.now(timezone.utc)
        self.hub.add(ev)
        return web.Response(status=202)

    async def _handle_messages(self, request: web.Request) -> web.Response:
        if request.method != "GET":
            return _method_not_allowed()
        limit = 100
        text = request.query.get("limit", "")
        if text:
            try:
                n = int(text)
            except ValueError:
                n = 0
            if n > 0:
                limit = n
        return _write_json([e.to_dict() for e in self.hub.recent(limit)])

    async def _handle_topology(self, request: web.Request) -> web.Response:
        if request.method != "GET":
            return _method_not_allowed()
        return _write_json(self.poller.last().to_dict())

    async def _handle_status(self, request: web.Request) -> web.Response:
        if request.method != "GET":
            return _method_not_allowed()
        return _write_json(
            {
                "uptime": _format_duration(float(int(self._uptime() + 0.5))),
                "started": _format_time(self.started),
                "messages": len(self.hub.recent(self.cfg.event_buffer)),
                "topology": self.poller.last().to_dict(),
            }
        )

    async def _list_ues(self) -> list[Any]:
        if self.ues is None:
            return []
        records = await _maybe_await(self.ues.list())
        return [_jsonable(r) for r in records or []]

    async def _handle_ues(self, request: web.Request) -> web.Response:
        if request.method == "GET":
            try:
                records = await self._list_ues()
            except Exception as exc:  # noqa: BLE001 - reported to the caller
                return _http_error(500, str(exc))
            return _write_json({"ues": records})
        if request.method == "POST":
            raw = await request.read()
            if self.ues is None:
                return _http_error(501, "UE management not configured")
            try:
                rec = await _maybe_await(self.ues.spawn(raw))
            except ValueError as exc:
                return _http_error(400, str(exc))
            except Exception as exc:  # noqa: BLE001 - reported to the caller
                return _http_error(500, str(exc))
            return _write_json(_jsonable(rec), status=201)
        return _method_not_allowed()

    async def _handle_ue_by_id(self, request: web.Request) -> web.Response:
        if request.method != "DELETE":
            return _method_not_allowed()
        ue_id = request.match_info["ue_id"]
        if not ue_id:
            return _http_error(400, "missing id")
        if self.ues is None:
            return _http_error(404, f"ue {ue_id} not found")
        try:
            await _maybe_await(self.ues.stop(ue_id))
        except Exception as exc:  # noqa: BLE001 - reported to the caller
            return _http_error(404, str(exc))
        return web.Response(status=204)

    async def _handle_static(self, request: web.Request) -> web.StreamResponse:
        if self.static_dir is None:
            return _http_error(404, _NO_UI)
        root = self.static_dir.resolve()
        target = (root / request.match_info["tail"]).resolve()
        try:
            target.relative_to(root)
        except ValueError:
            return _http_error(404, "404 page not found")
        if target.is_dir():
            target = target / "index.html"
        if not target.is_file():
            return _http_error(404, "404 page not found")
        return web.FileResponse(target)

    # --- WebSocket feed ---

    async def _safe_list_ues(self) -> list[Any]:
        try:
            return await self._list_ues()
        except Exception:  # noqa: BLE001 - snapshot just omits UEs
            return []

    @staticmethod
    async def _drain(ws: web.WebSocketResponse) -> int:
        """Read and discard client frames until the peer goes away; return the count read."""
        count = 0
        async for msg in ws:
            if msg.type == WSMsgType.ERROR:
                log.debug("websocket read error: %s", ws.exception())
                break
            count += 1
        return count

    async def _handle_websocket(self, request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        try:
            await ws.send_json(
                {
                    "type": "snapshot",
                    "topology": self.poller.last().to_dict(),
                    "messages": [e.to_dict() for e in self.hub.recent(100)],
                    "ues": await self._safe_list_ues(),
                    "uptime": _format_duration(self._uptime()),
                }
            )
        except (ConnectionError, RuntimeError):
            return ws

        queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=32)
        self.hub.subscribe(queue)
        loop = asyncio.get_running_loop()
        reader = asyncio.ensure_future(self._drain(ws))
        getter: asyncio.Future[Event] | None = None
        next_tick = loop.time() + self.topology_interval
        try:
            while True:
                if getter is None:
                    getter = asyncio.ensure_future(queue.get())
                done, _ = await asyncio.wait(
                    {getter, reader},
                    timeout=max(0.0, next_tick - loop.time()),
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if reader in done:
                    break
                if getter in done:
                    ev = getter.result()
                    getter = None
                    frame = {"type": "event", "event": ev.to_dict()}
                else:
                    next_tick += self.topology_interval
                    frame = {"type": "topology", "topology": self.poller.last().to_dict()}
                try:
                    await ws.send_json(frame)
                except (ConnectionError, RuntimeError):
                    break
        finally:
            self.hub.unsubscribe(queue)
            if getter is not None:
                getter.cancel()
            reader.cancel()
            await ws.close()
        return ws

    # --- serving ---

    async def start(self) -> None:
        """Serve until cancelled."""
        runner = web.AppRunner(self.app())
        await runner.setup()
        site = web.TCPSite(runner, self.cfg.bind_address or None, self.cfg.port)
        await site.start()
        log.info("listening on http://%s", self.cfg.listen_addr())
        try:
            await asyncio.Event().wait()
        finally:
            await runner.cleanup()