"""Thread-safe in-memory registry of NF instances (TS 29.510 §5.3.2)."""

from __future__ import annotations

import dataclasses
import logging
import threading
from datetime import datetime, timezone

from corenet.nrf.types import NFProfile, NFStatus, NFTypeLike, Snssai

log = logging.getLogger(__name__)


class NFNotFoundError(LookupError):
    """Raised when an NF instance ID is not in the registry."""

    def __init__(self, nf_instance_id: str) -> None:
        super().__init__(f"NF instance {nf_instance_id} not found")
        self.nf_instance_id = nf_instance_id

    def __str__(self) -> str:
        return self.args[0]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Registry:
    """Stores NF profiles keyed by nfInstanceId."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._profiles: dict[str, NFProfile] = {}

    def register(self, profile: NFProfile) -> bool:
        """Store or replace a profile; return True when it is a new registration."""
        with self._lock:
            is_new = profile.nf_instance_id not in self._profiles
            now = _now()
            profile.registered_at = now
            profile.last_heartbeat = now
            profile.nf_status = NFStatus.REGISTERED
            self._profiles[profile.nf_instance_id] = profile
        action = "Registered new NF" if is_new else "Updated NF profile"
        log.info("%s: type=%s id=%s", action, profile.nf_type, profile.nf_instance_id)
        return is_new

    def heartbeat(self, nf_instance_id: str) -> None:
        """Refresh the last-heartbeat time of a registered NF."""
        with self._lock:
            profile = self._profiles.get(nf_instance_id)
            if profile is None:
                raise NFNotFoundError(nf_instance_id)
            profile.last_heartbeat = _now()
        log.info("Heartbeat from NF: type=%s id=%s", profile.nf_type, nf_instance_id)

    def deregister(self, nf_instance_id: str) -> None:
        """Remove an NF profile."""
        with self._lock:
            profile = self._profiles.pop(nf_instance_id, None)
        if profile is None:
            raise NFNotFoundError(nf_instance_id)
        log.info("Deregistered NF: type=%s id=%s", profile.nf_type, nf_instance_id)

    def get(self, nf_instance_id: str) -> NFProfile | None:
        """Return the stored profile, or None when unknown."""
        with self._lock:
            return self._profiles.get(nf_instance_id)

    def discover(
        self,
        target_nf_type: NFTypeLike = "",
        requester_nf_type: NFTypeLike = "",
        plmn: str = "",
        snssai: Snssai | None = None,
    ) -> list[NFProfile]:
        """Return copies of registered profiles matching all non-empty criteria."""
        with self._lock:
            results = [
                dataclasses.replace(p)
                for p in self._profiles.values()
                if _matches(p, target_nf_type, requester_nf_type, plmn, snssai)
            ]
        log.info(
            "Discovery: target=%s requester=%s -> %d results",
            target_nf_type,
            requester_nf_type,
            len(results),
        )
        return results

    def count(self) -> int:
        """Number of registered NF instances."""
        with self._lock:
            return len(self._profiles)


def _matches(
    profile: NFProfile,
    target: NFTypeLike,
    requester: NFTypeLike,
    plmn: str,
    snssai: Snssai | None,
) -> bool:
    if target and profile.nf_type != target:
        return False
    if profile.nf_status != NFStatus.REGISTERED:
        return False
    if plmn and plmn not in profile.plmn_list:
        return False
    if snssai is not None and not any(
        s.sst == snssai.sst and (not snssai.sd or s.sd == snssai.sd) for s in profile.snssais
    ):
        return False
    if requester and profile.allowed_nf_types and requester not in profile.allowed_nf_types:
        return False
    return True