"""HTTP client for NF registration, heartbeat and discovery against an NRF (TS 29.510 §5.3)."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any
from urllib.parse import urlencode

import requests

from corenet.nrf.types import DiscoveryResponse, NFProfile, NFTypeLike

log = logging.getLogger(__name__)


class NRFClientError(RuntimeError):
    """Raised when a request to the NRF fails or is refused."""


def _text(value: Any) -> str:
    return value.value if isinstance(value, Enum) else str(value)


def _status(resp: requests.Response) -> str:
    return f"{resp.status_code} {resp.reason}".strip()


class Client:
    """Talks to the NRF management and discovery services."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._session = session if session is not None else requests.Session()

    def _instance_url(self, nf_instance_id: str) -> str:
        return f"{self.base_url}/nnrf-nfm/v1/nf-instances/{nf_instance_id}"

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            return self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise NRFClientError(f"{method} {url}: {exc}") from exc

    def register(self, profile: NFProfile) -> NFProfile:
        """PUT this NF's profile and return the profile as stored by the NRF."""
        url = self._instance_url(profile.nf_instance_id)
        resp = self._request("PUT", url, json=profile.to_dict())
        with resp:
            if resp.status_code not in (200, 201):
                raise NRFClientError(f"NRF register failed: {_status(resp)} — {resp.text}")
            try:
                stored = NFProfile.from_dict(resp.json())
            except (ValueError, TypeError, AttributeError) as exc:
                raise NRFClientError(f"decode response: {exc}") from exc
        log.info("Registered as %s (id=%s)", _text(profile.nf_type), profile.nf_instance_id)
        return stored

    def heartbeat(self, nf_instance_id: str) -> None:
        """PATCH the NF instance to signal it is still alive."""
        resp = self._request("PATCH", self._instance_url(nf_instance_id))
        with resp:
            if resp.status_code != 200:
                raise NRFClientError(f"heartbeat failed: {_status(resp)}")

    def deregister(self, nf_instance_id: str) -> None:
        """DELETE the NF instance from the registry."""
        resp = self._request("DELETE", self._instance_url(nf_instance_id))
        with resp:
            if resp.status_code != 204:
                raise NRFClientError(f"deregister failed: {_status(resp)}")
        log.info("Deregistered NF instance %s", nf_instance_id)

    def discover(
        self,
        target_nf_type: NFTypeLike = "",
        requester_nf_type: NFTypeLike = "",
        plmn: str = "",
    ) -> DiscoveryResponse:
        """Query for NF instances; empty criteria act as wildcards."""
        params: dict[str, str] = {}
        if target_nf_type:
            params["target-nf-type"] = _text(target_nf_type)
        if requester_nf_type:
            params["requester-nf-type"] = _text(requester_nf_type)
        if plmn:
            params["plmn-id"] = plmn
        endpoint = f"{self.base_url}/nnrf-disc/v1/nf-instances?{urlencode(sorted(params.items()))}"

        resp = self._request("GET", endpoint)
        with resp:
            if resp.status_code != 200:
                raise NRFClientError(f"discovery failed: {_status(resp)} — {resp.text}")
            try:
                result = DiscoveryResponse.from_dict(resp.json())
            except (ValueError, TypeError, AttributeError) as exc:
                raise NRFClientError(f"decode discovery response: {exc}") from exc
        log.info(
            "Discovery: target=%s -> %d instances found",
            _text(target_nf_type),
            len(result.nf_instances),
        )
        return result