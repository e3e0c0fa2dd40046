"""Health polling of the configured network functions."""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import aiohttp

from corenet.nrf.types import _format_time
from corenet.observatory.config import Config

_ZERO_TIME = "0001-01-01T00:00:00Z"


@dataclass
class NFStatus:
    """Health of one network function: status is "up" or "down"."""

    id: str
    label: str
    health_url: str
    status: str = "down"
    sub: str = ""
    spec: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "label": self.label}
        if self.sub:
            out["sub"] = self.sub
        if self.spec:
            out["spec"] = self.spec
        out["healthUrl"] = self.health_url
        out["status"] = self.status
        return out


@dataclass
class TopologySnapshot:
    """Result of one round of health probes."""

    nfs: list[NFStatus] = field(default_factory=list)
    online: int = 0
    total: int = 0
    checked_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "nfs": [nf.to_dict() for nf in self.nfs],
            "online": self.online,
            "total": self.total,
            "checkedAt": _format_time(self.checked_at) if self.checked_at else _ZERO_TIME,
        }


class Poller:
    """Probes NF health endpoints and remembers the latest snapshot."""

    def __init__(self, cfg: Config, timeout: float = 2.0) -> None:
        self.cfg = cfg
        self.timeout = timeout
        self._lock = threading.Lock()
        self._last = TopologySnapshot()

    async def _probe(self, session: aiohttp.ClientSession, url: str) -> bool:
        try:
            async with session.get(url) as resp:
                return resp.status == 200
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError, OSError):
            return False

    async def poll(self) -> TopologySnapshot:
        """Check every configured health URL once."""
        out = TopologySnapshot(total=len(self.cfg.nfs), checked_at=datetime.now(timezone.utc))
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            for nf in self.cfg.nfs:
                st = NFStatus(
                    id=nf.id,
                    label=nf.label or nf.id,
                    health_url=nf.health_url,
                    sub=nf.sub,
                    spec=nf.spec,
                )
                if await self._probe(session, nf.health_url):
                    st.status = "up"
                    out.online += 1
                out.nfs.append(st)
        with self._lock:
            self._last = out
        return out

    def last(self) -> TopologySnapshot:
        """Return the most recent snapshot."""
        with self._lock:
            return self._last

    async def run(self, interval: float) -> None:
        """Poll now and then every interval seconds until cancelled."""
        await self.poll()
        while True:
            await asyncio.sleep(interval)
            await self.poll()