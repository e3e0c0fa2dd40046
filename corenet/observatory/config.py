"""Observatory server settings and YAML loading."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

_DEFAULT_EVENT_BUFFER = 500


@dataclass
class NFEndpoint:
    """One network function health probe."""

    id: str = ""
    label: str = ""
    sub: str = ""
    spec: str = ""
    health_url: str = ""


def _default_nfs() -> list[NFEndpoint]:
    return [
        NFEndpoint("NRF", "NRF", "Network Repository Function", "TS 29.510",
                   "http://127.0.0.1:8000/health"),
        NFEndpoint("AMF", "AMF", "Access & Mobility Management", "TS 29.518",
                   "http://127.0.0.1:8090/health"),
        NFEndpoint("SMF", "SMF", "Session Management Function", "TS 29.502",
                   "http://127.0.0.1:8001/health"),
        NFEndpoint("UPF", "UPF", "User Plane Function", "TS 29.244",
                   "http://127.0.0.1:8002/health"),
        NFEndpoint("gNB", "gNB", "Next-Gen NodeB", "TS 38.413",
                   "http://127.0.0.1:8003/health"),
        NFEndpoint("UDM", "UDM", "Unified Data Management", "TS 29.503",
                   "http://127.0.0.1:8004/health"),
    ]


@dataclass
class Config:
    """Observatory settings; the defaults suit a local NF simulation."""

    bind_address: str = "127.0.0.1"
    port: int = 9090
    amf_obs_url: str = "http://127.0.0.1:8090/obs/v1/ues"
    ue_supervisor_url: str = "http://127.0.0.1:9080"
    auto_spawn_default_ue: bool = True
    default_ue_profile: str = "local"
    repo_root: str = ""
    nfs: list[NFEndpoint] = field(default_factory=_default_nfs)
    event_buffer: int = _DEFAULT_EVENT_BUFFER

    def listen_addr(self) -> str:
        """Return host:port for the HTTP listener."""
        return f"{self.bind_address}:{self.port}"


def default_config() -> Config:
    """Return settings for local NF simulation."""
    return Config()


_SCALARS: dict[str, type] = {
    "bind_address": str,
    "port": int,
    "amf_obs_url": str,
    "ue_supervisor_url": str,
    "auto_spawn_default_ue": bool,
    "default_ue_profile": str,
    "repo_root": str,
    "event_buffer": int,
}

_ENDPOINT_KEYS = ("id", "label", "sub", "spec", "health_url")


def _convert(name: str, value: Any, kind: type) -> Any:
    if value is None:
        return kind()
    if kind is bool:
        if not isinstance(value, bool):
            raise ValueError(f"{name}: cannot use {value!r} as a boolean")
        return value
    if kind is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{name}: cannot use {value!r} as an integer")
        return value
    if isinstance(value, (dict, list)):
        raise ValueError(f"{name}: cannot use {value!r} as a string")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _convert_nfs(value: Any) -> list[NFEndpoint]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError("nfs: must be a list")
    endpoints = []
    for item in value:
        if not isinstance(item, dict):
            raise ValueError(f"nfs: entry {item!r} must be a mapping")
        endpoints.append(
            NFEndpoint(**{k: _convert(f"nfs.{k}", item.get(k), str) for k in _ENDPOINT_KEYS})
        )
    return endpoints


def load_config(path: str | Path) -> Config:
    """Read a YAML file merged over the defaults."""
    text = Path(path).read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"observatory: parse config {path}: {exc}") from exc

    cfg = default_config()
    if data is not None:
        if not isinstance(data, dict):
            raise ValueError(f"observatory: parse config {path}: top level must be a mapping")
        try:
            for key, kind in _SCALARS.items():
                if key in data:
                    setattr(cfg, key, _convert(key, data[key], kind))
            if "nfs" in data:
                cfg.nfs = _convert_nfs(data["nfs"])
        except ValueError as exc:
            raise ValueError(f"observatory: parse config {path}: {exc}") from exc

    if cfg.event_buffer <= 0:
        cfg.event_buffer = _DEFAULT_EVENT_BUFFER
    return cfg