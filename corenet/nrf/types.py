"""NRF data model: NF types, statuses and profiles (TS 29.510 §6.1.6)."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union


class NFType(str, Enum):
    """Type of a network function (TS 29.510 §6.1.6.3.3)."""

    AMF = "AMF"
    SMF = "SMF"
    UPF = "UPF"
    UDM = "UDM"
    AUSF = "AUSF"
    PCF = "PCF"
    NRF = "NRF"
    NSSF = "NSSF"


class NFStatus(str, Enum):
    """Operational status of a registered NF instance (TS 29.510 §6.1.6.3.4)."""

    REGISTERED = "REGISTERED"
    SUSPENDED = "SUSPENDED"
    UNREGISTERED = "UNDISCOVERABLE"


NFTypeLike = Union[NFType, str]
NFStatusLike = Union[NFStatus, str]

_TIME_RE = re.compile(
    r"(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(\.\d+)?(Z|[+-]\d{2}:\d{2})?"
)


def _text(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _coerce(enum_cls: type[Enum], value: Any) -> Any:
    if value is None:
        return ""
    try:
        return enum_cls(value)
    except ValueError:
        return str(value)


def _format_time(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _parse_time(text: Any) -> datetime | None:
    if not text:
        return None
    match = _TIME_RE.fullmatch(str(text))
    if match is None:
        raise ValueError(f"invalid timestamp {text!r}")
    base, frac, zone = match.groups()
    if base.startswith("0001-01-01T00:00:00"):
        return None
    frac = "." + frac[1:7].ljust(6, "0") if frac else ""
    offset = "+00:00" if zone in (None, "Z") else zone
    return datetime.fromisoformat(base + frac + offset)


@dataclass
class Snssai:
    """Slice identifier: SST plus optional 6-hex-digit SD."""

    sst: int = 0
    sd: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"sst": self.sst}
        if self.sd:
            out["sd"] = self.sd
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Snssai:
        return cls(sst=int(data.get("sst") or 0), sd=str(data.get("sd") or ""))


@dataclass
class NFService:
    """One service endpoint exposed by an NF instance."""

    service_instance_id: str = ""
    service_name: str = ""
    versions: list[str] = field(default_factory=list)
    scheme: str = ""
    nf_service_status: NFStatusLike = ""
    api_prefix: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "serviceInstanceId": self.service_instance_id,
            "serviceName": self.service_name,
            "versions": list(self.versions),
            "scheme": self.scheme,
            "nfServiceStatus": _text(self.nf_service_status),
        }
        if self.api_prefix:
            out["apiPrefix"] = self.api_prefix
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NFService:
        return cls(
            service_instance_id=str(data.get("serviceInstanceId") or ""),
            service_name=str(data.get("serviceName") or ""),
            versions=[str(v) for v in data.get("versions") or []],
            scheme=str(data.get("scheme") or ""),
            nf_service_status=_coerce(NFStatus, data.get("nfServiceStatus")),
            api_prefix=str(data.get("apiPrefix") or ""),
        )


@dataclass
class NFProfile:
    """Full description of a network function instance (TS 29.510 §6.1.6.2.2)."""

    nf_instance_id: str = ""
    nf_type: NFTypeLike = ""
    nf_status: NFStatusLike = ""
    plmn_list: list[str] = field(default_factory=list)
    snssais: list[Snssai] = field(default_factory=list)
    fqdn: str = ""
    ipv4_addresses: list[str] = field(default_factory=list)
    allowed_nf_types: list[NFTypeLike] = field(default_factory=list)
    nf_services: list[NFService] = field(default_factory=list)
    capacity: int = 0
    registered_at: datetime | None = None
    last_heartbeat: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "nfInstanceId": self.nf_instance_id,
            "nfType": _text(self.nf_type),
            "nfStatus": _text(self.nf_status),
        }
        if self.plmn_list:
            out["plmnList"] = list(self.plmn_list)
        if self.snssais:
            out["sNssais"] = [s.to_dict() for s in self.snssais]
        if self.fqdn:
            out["fqdn"] = self.fqdn
        if self.ipv4_addresses:
            out["ipv4Addresses"] = list(self.ipv4_addresses)
        if self.allowed_nf_types:
            out["allowedNfTypes"] = [_text(t) for t in self.allowed_nf_types]
        if self.nf_services:
            out["nfServices"] = [s.to_dict() for s in self.nf_services]
        if self.capacity:
            out["capacity"] = self.capacity
        if self.registered_at is not None:
            out["registeredAt"] = _format_time(self.registered_at)
        if self.last_heartbeat is not None:
            out["lastHeartbeat"] = _format_time(self.last_heartbeat)
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NFProfile:
        if not isinstance(data, dict):
            raise ValueError("NF profile must be a JSON object")
        return cls(
            nf_instance_id=str(data.get("nfInstanceId") or ""),
            nf_type=_coerce(NFType, data.get("nfType")),
            nf_status=_coerce(NFStatus, data.get("nfStatus")),
            plmn_list=[str(p) for p in data.get("plmnList") or []],
            snssais=[Snssai.from_dict(s) for s in data.get("sNssais") or []],
            fqdn=str(data.get("fqdn") or ""),
            ipv4_addresses=[str(a) for a in data.get("ipv4Addresses") or []],
            allowed_nf_types=[_coerce(NFType, t) for t in data.get("allowedNfTypes") or []],
            nf_services=[NFService.from_dict(s) for s in data.get("nfServices") or []],
            capacity=int(data.get("capacity") or 0),
            registered_at=_parse_time(data.get("registeredAt")),
            last_heartbeat=_parse_time(data.get("lastHeartbeat")),
        )


@dataclass
class DiscoveryResponse:
    """Result of an NF discovery query (TS 29.510 §6.1.6.2.36)."""

    validity_period: int = 0
    nf_instances: list[NFProfile] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "validityPeriod": self.validity_period,
            "nfInstances": [p.to_dict() for p in self.nf_instances],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DiscoveryResponse:
        return cls(
            validity_period=int(data.get("validityPeriod") or 0),
            nf_instances=[NFProfile.from_dict(p) for p in data.get("nfInstances") or []],
        )


@dataclass
class ErrorResponse:
    """Problem details body returned on errors (TS 29.571 §5.2.6)."""

    title: str
    status: int
    detail: str = ""
    type: str = ""
    instance: str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.type:
            out["type"] = self.type
        out["title"] = self.title
        out["status"] = self.status
        if self.detail:
            out["detail"] = self.detail
        if self.instance:
            out["instance"] = self.instance
        return out