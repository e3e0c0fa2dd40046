"""NRF startup configuration and YAML loading."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml


@dataclass
class Config:
    """NRF settings: listen address, HTTP port and discovery validity (seconds)."""

    bind_address: str = ""
    port: int = 8000
    validity_period: int = 3600


def default_config() -> Config:
    """Return defaults for local development."""
    return Config()


def _convert(name: str, value: Any, kind: type) -> Any:
    if value is None:
        return kind()
    if kind is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{name}: cannot use {value!r} as an integer")
        return value
    if isinstance(value, (dict, list)):
        raise ValueError(f"{name}: cannot use {value!r} as a string")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def load_config(path: str | Path) -> Config:
    """Read a YAML file and merge its fields over the defaults."""
    text = Path(path).read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"parse config {path}: {exc}") from exc

    cfg = default_config()
    if data is None:
        return cfg
    if not isinstance(data, dict):
        raise ValueError(f"parse config {path}: top level must be a mapping")

    kinds = {"bind_address": str, "port": int, "validity_period": int}
    for key, kind in kinds.items():
        if key in data:
            try:
                value = _convert(key, data[key], kind)
            except ValueError as exc:
                raise ValueError(f"parse config {path}: {exc}") from exc
            cfg = dataclasses.replace(cfg, **{key: value})
    return cfg