import socket
import threading

import pytest

from corenet.nrf.client import Client, NRFClientError
from corenet.nrf.config import default_config
from corenet.nrf.server import NRF
from corenet.nrf.types import NFProfile, NFStatus, NFType


@pytest.fixture
def nrf_and_client():
    nrf = NRF(default_config())
    server = nrf.make_server("127.0.0.1", 0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    yield nrf, Client(f"http://{host}:{port}")
    server.shutdown()
    server.server_close()


def test_http_register_and_discover(nrf_and_client):
    _, client = nrf_and_client
    profile = NFProfile(
        nf_instance_id="amf-http-001",
        nf_type=NFType.AMF,
        plmn_list=["00101"],
        ipv4_addresses=["127.0.0.1"],
    )
    stored = client.register(profile)
    assert stored.nf_status == NFStatus.REGISTERED
    assert stored.nf_instance_id == "amf-http-001"
    assert stored.registered_at is not None

    result = client.discover(NFType.AMF, NFType.SMF, "00101")
    assert len(result.nf_instances) == 1
    assert result.nf_instances[0].nf_instance_id == "amf-http-001"
    assert result.validity_period == 3600


def test_http_deregister(nrf_and_client):
    nrf, client = nrf_and_client
    client.register(NFProfile(nf_instance_id="smf-http-001", nf_type=NFType.SMF))
    client.deregister("smf-http-001")
    result = client.discover(NFType.SMF, NFType.AMF, "")
    assert result.nf_instances == []
    assert nrf.registry.count() == 0


def test_http_heartbeat(nrf_and_client):
    nrf, client = nrf_and_client
    client.register(NFProfile(nf_instance_id="udm-001", nf_type=NFType.UDM))
    before = nrf.registry.get("udm-001").last_heartbeat
    client.heartbeat("udm-001")
    assert nrf.registry.get("udm-001").last_heartbeat >= before


def test_heartbeat_unknown_raises(nrf_and_client):
    _, client = nrf_and_client
    with pytest.raises(NRFClientError, match="heartbeat failed: 404"):
        client.heartbeat("ghost")


def test_deregister_unknown_raises(nrf_and_client):
    _, client = nrf_and_client
    with pytest.raises(NRFClientError, match="deregister failed: 404"):
        client.deregister("ghost")


def test_discover_wildcard_returns_all(nrf_and_client):
    _, client = nrf_and_client
    client.register(NFProfile(nf_instance_id="a", nf_type=NFType.AMF))
    client.register(NFProfile(nf_instance_id="b", nf_type=NFType.SMF))
    result = client.discover()
    assert sorted(p.nf_instance_id for p in result.nf_instances) == ["a", "b"]


def test_unreachable_nrf_raises():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    client = Client(f"http://127.0.0.1:{port}", timeout=2)
    with pytest.raises(NRFClientError, match="PATCH"):
        client.heartbeat("x")