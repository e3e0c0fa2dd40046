"""NRF HTTP API: NF management (nnrf-nfm) and NF discovery (nnrf-disc) (TS 29.510 §6)."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Union
from urllib.parse import parse_qs, unquote, urlsplit

from corenet.nrf.config import Config, default_config
from corenet.nrf.registry import NFNotFoundError, Registry
from corenet.nrf.types import (
    DiscoveryResponse,
    ErrorResponse,
    NFProfile,
    NFType,
    Snssai,
)

log = logging.getLogger(__name__)

NFM_PREFIX = "/nnrf-nfm/v1/nf-instances/"
DISCOVERY_PATH = "/nnrf-disc/v1/nf-instances"
HEALTH_PATH = "/health"

#: A reply as (status code, headers, body).
Reply = tuple[int, dict[str, str], bytes]
Query = Union[str, Mapping[str, Any], None]

_HEARTBEAT_ACK_SECONDS = 60
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _json_reply(status: int, obj: Any, content_type: str = "application/json") -> Reply:
    body = (json.dumps(obj) + "\n").encode("utf-8")
    return status, {"Content-Type": content_type}, body


def _error(status: int, detail: str) -> Reply:
    problem = ErrorResponse(title=HTTPStatus(status).phrase, status=status, detail=detail)
    return _json_reply(status, problem.to_dict(), "application/problem+json")


def _text(status: int, text: str) -> Reply:
    return status, {"Content-Type": "text/plain; charset=utf-8"}, text.encode("utf-8")


def _query_value(query: Query, key: str) -> str:
    """Return the first value of a query parameter, or "" when absent."""
    if not query:
        return ""
    values: Any
    if isinstance(query, str):
        values = parse_qs(query, keep_blank_values=True).get(key)
    else:
        values = query.get(key)
    if values is None:
        return ""
    if isinstance(values, (list, tuple)):
        return str(values[0]) if values else ""
    return str(values)


def _as_nf_type(text: str) -> NFType | str:
    try:
        return NFType(text)
    except ValueError:
        return text


def _parse_sst(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


class NRF:
    """Network Repository Function: an in-memory registry behind an HTTP API."""

    def __init__(self, config: Config | None = None) -> None:
        self.config = config if config is not None else default_config()
        self.registry = Registry()

    def handle(
        self, method: str, path: str, query: Query = None, body: bytes = b""
    ) -> Reply:
        """Route one request and return (status, headers, body)."""
        method = method.upper()
        if path.startswith(NFM_PREFIX):
            return self._handle_management(method, path[len(NFM_PREFIX):], body)
        if path == NFM_PREFIX.rstrip("/"):
            return HTTPStatus.MOVED_PERMANENTLY, {"Location": NFM_PREFIX}, b""
        if path == DISCOVERY_PATH:
            return self._handle_discovery(method, query)
        if path == HEALTH_PATH:
            return _text(HTTPStatus.OK, "ok")
        return _text(HTTPStatus.NOT_FOUND, "404 page not found\n")

    # --- NF management ---

    def _handle_management(self, method: str, nf_instance_id: str, body: bytes) -> Reply:
        if not nf_instance_id:
            return _error(HTTPStatus.BAD_REQUEST, "missing nfInstanceId in path")
        if method == "PUT":
            return self._register_nf(nf_instance_id, body)
        if method == "GET":
            return self._get_nf(nf_instance_id)
        if method == "DELETE":
            return self._deregister_nf(nf_instance_id)
        if method == "PATCH":
            return self._heartbeat_nf(nf_instance_id)
        return _error(HTTPStatus.METHOD_NOT_ALLOWED, "method not allowed")

    def _register_nf(self, nf_instance_id: str, body: bytes) -> Reply:
        try:
            data = json.loads(body.decode("utf-8"))
            profile = NFProfile.from_dict(data if data is not None else {})
        except (ValueError, TypeError, AttributeError) as exc:
            return _error(HTTPStatus.BAD_REQUEST, f"invalid JSON: {exc}")

        # The ID in the path wins over whatever the body claims.
        profile.nf_instance_id = nf_instance_id
        is_new = self.registry.register(profile)
        status = HTTPStatus.CREATED if is_new else HTTPStatus.OK
        return _json_reply(status, profile.to_dict())

    def _get_nf(self, nf_instance_id: str) -> Reply:
        profile = self.registry.get(nf_instance_id)
        if profile is None:
            return _error(HTTPStatus.NOT_FOUND, f"NF instance {nf_instance_id} not found")
        return _json_reply(HTTPStatus.OK, profile.to_dict())

    def _deregister_nf(self, nf_instance_id: str) -> Reply:
        try:
            self.registry.deregister(nf_instance_id)
        except NFNotFoundError as exc:
            return _error(HTTPStatus.NOT_FOUND, str(exc))
        return HTTPStatus.NO_CONTENT, {}, b""

    def _heartbeat_nf(self, nf_instance_id: str) -> Reply:
        try:
            self.registry.heartbeat(nf_instance_id)
        except NFNotFoundError as exc:
            return _error(HTTPStatus.NOT_FOUND, str(exc))
        return _json_reply(HTTPStatus.OK, {"heartbeatAckTimer": str(_HEARTBEAT_ACK_SECONDS)})

    # --- NF discovery ---

    def _handle_discovery(self, method: str, query: Query) -> Reply:
        if method != "GET":
            return _error(HTTPStatus.METHOD_NOT_ALLOWED, "method not allowed")

        target = _as_nf_type(_query_value(query, "target-nf-type"))
        requester = _as_nf_type(_query_value(query, "requester-nf-type"))
        plmn = _query_value(query, "plmn-id")
        sst_text = _query_value(query, "snssais")
        snssai = Snssai(sst=_parse_sst(sst_text)) if sst_text else None

        instances = self.registry.discover(target, requester, plmn, snssai)
        result = DiscoveryResponse(
            validity_period=self.config.validity_period, nf_instances=instances
        )
        return _json_reply(HTTPStatus.OK, result.to_dict())

    # --- serving ---

    def make_server(self, host: str, port: int) -> ThreadingHTTPServer:
        """Create (but do not start) a threaded HTTP server bound to host:port."""
        nrf = self

        class _Handler(BaseHTTPRequestHandler):
            server_version = "corenet-nrf"

            def _serve(self) -> None:
                split = urlsplit(self.path)
                length = int(self.headers.get("Content-Length") or 0)
                body = self.rfile.read(length) if length > 0 else b""
                status, headers, payload = nrf.handle(
                    self.command, unquote(split.path), split.query, body
                )
                self.send_response(int(status))
                for name, value in headers.items():
                    self.send_header(name, value)
                if status != HTTPStatus.NO_CONTENT:
                    self.send_header("Content-Length", str(len(payload)))
                self.end_headers()
                if payload and status != HTTPStatus.NO_CONTENT and self.command != "HEAD":
                    self.wfile.write(payload)

            do_GET = do_PUT = do_POST = do_PATCH = do_DELETE = do_HEAD = _serve
            do_OPTIONS = _serve

            def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
                log.debug("%s - %s", self.address_string(), format % args)

        server = ThreadingHTTPServer((host, port), _Handler)
        server.daemon_threads = True
        return server

    def start(self) -> None:
        """Serve the NRF API on the configured address until interrupted."""
        addr = f"{self.config.bind_address}:{self.config.port}"
        log.info("HTTP server listening on %s", addr)
        log.info("Routes:")
        log.info("  PUT    /nnrf-nfm/v1/nf-instances/{id}  -> Register")
        log.info("  GET    /nnrf-nfm/v1/nf-instances/{id}  -> Get profile")
        log.info("  DELETE /nnrf-nfm/v1/nf-instances/{id}  -> Deregister")
        log.info("  PATCH  /nnrf-nfm/v1/nf-instances/{id}  -> Heartbeat")
        log.info("  GET    /nnrf-disc/v1/nf-instances       -> Discover")
        with self.make_server(self.config.bind_address, self.config.port) as server:
            server.serve_forever()