# corenet

Building blocks for a simulated 5G core network, used as a library:

- **`corenet.nas`** — encoders and decoders for the 5G NAS messages of the
  Registration procedure, NAS transport and PDU session establishment
  (plain byte layouts, no ASN.1).
- **`corenet.nrf`** — a Network Repository Function: an in-memory,
  thread-safe registry of network-function profiles, an HTTP server for NF
  management and discovery, and a client for talking to it.
- **`corenet.observatory`** — an event hub that buffers signalling events
  and fans them out to subscribers, a health poller for the configured
  network functions, and an aiohttp server with a JSON API and a WebSocket
  feed.

## NAS messages

Mobility-management messages live in `corenet.nas.message`:

```python
from corenet.nas.message import (
    build_registration_request,
    decode,
    decode_registration_request,
    decode_supi_from_mobile_identity,
)

raw = build_registration_request("imsi-001010000000001", 0x01, True)
msg = decode(raw)                          # Message: epd, security_header, message_type, payload
req = decode_registration_request(msg.payload)
print(decode_supi_from_mobile_identity(req.mobile_identity))
# imsi-001010000000001
```

The same module builds and decodes Registration Accept (with optional
`GUTI5G` and allowed `SNSSAI` list), Registration Complete and Reject, and
wraps session-management payloads in UL/DL NAS Transport messages
(`build_ul_nas_transport_mm`, `build_dl_nas_transport_mm`,
`decode_dl_nas_transport`). Mobile identities are encoded as a null-scheme
SUCI for the fixed test PLMN 001-01.

Session-management messages live in `corenet.nas.session`:

```python
from corenet.nas.session import build_pdu_session_establishment_accept, append_downlink_teid
from corenet.nas.message import decode_pdu_session_establishment_accept

accept = build_pdu_session_establishment_accept(1, "10.45.0.2", "internet")
accept = append_downlink_teid(accept, 0x42)
info = decode_pdu_session_establishment_accept(accept)
print(info.allocated_ip, info.dnn, hex(info.downlink_teid))
# 10.45.0.2 internet 0x42
```

Constants (message types, cause values, IEIs) and the value types
`GUTI5G`, `SNSSAI` and `UESecurityCapability` are in `corenet.nas.types`.
Malformed input raises `corenet.nas.types.NASError`, a `ValueError`.

## Network Repository Function

The registry can be used directly:

```python
from corenet.nrf.registry import Registry
from corenet.nrf.types import NFProfile, NFType

registry = Registry()
registry.register(NFProfile(nf_instance_id="amf-001", nf_type=NFType.AMF, plmn_list=["00101"]))
found = registry.discover(NFType.AMF, NFType.SMF, "00101", None)
```

`register` returns `True` for a new instance and `False` for an update,
and marks the profile `REGISTERED`. `heartbeat` and `deregister` raise
`NFNotFoundError` for unknown instances; `get` returns `None`.

`NRF` serves the registry over HTTP:

| Method | Path | Effect |
| --- | --- | --- |
| `PUT` | `/nnrf-nfm/v1/nf-instances/{id}` | register (201) or update (200) |
| `GET` | `/nnrf-nfm/v1/nf-instances/{id}` | fetch a profile |
| `DELETE` | `/nnrf-nfm/v1/nf-instances/{id}` | deregister (204) |
| `PATCH` | `/nnrf-nfm/v1/nf-instances/{id}` | heartbeat |
| `GET` | `/nnrf-disc/v1/nf-instances` | discover by `target-nf-type`, `requester-nf-type`, `plmn-id`, `snssais` |
| `GET` | `/health` | returns `ok` |

```python
from corenet.nrf.config import load_config
from corenet.nrf.server import NRF

NRF(load_config("nrf.yaml")).start()   # blocks, serving on bind_address:port
```

`load_config` reads `bind_address`, `port` and `validity_period` from YAML;
missing fields keep their defaults (all interfaces, port 8000, 3600 s).
`NRF.handle(method, path, query, body)` routes a request without a socket,
and `NRF.make_server(host, port)` returns an unstarted
`ThreadingHTTPServer`.

`Client` talks to a running NRF:

```python
from corenet.nrf.client import Client

client = Client("http://127.0.0.1:8000")
result = client.discover("SMF", "AMF", "00101")
```

Failed or refused requests raise `NRFClientError`.

## Observatory

- `Hub(max_events)` keeps the most recent `Event`s (500 by default).
  `add` fills in a missing id and timestamp and pushes the event to every
  subscribed queue (anything with `put_nowait`); full queues are skipped.
- `Poller(cfg)` probes each configured health URL; `await poll()` returns a
  `TopologySnapshot`, `last()` returns the latest one and `run(interval)`
  polls until cancelled.
- `Server(cfg, hub, poller, ues=None, static_dir=None)` builds an aiohttp
  application with `app()`, or serves it with `await start()`:
  - `POST /api/v1/events` — ingest an event (202)
  - `GET /api/v1/messages?limit=N` — recent events (100 by default)
  - `GET /api/v1/topology`, `GET /api/v1/status`
  - `GET`/`POST /api/v1/ues`, `DELETE /api/v1/ues/{id}` — delegated to `ues`
  - `/ws` — a `snapshot` frame, then `event` frames as they arrive and a
    `topology` frame every `topology_interval` seconds (3 by default)
  - anything else is served from `static_dir`

Configuration is read with `corenet.observatory.config.load_config`; any
field left out keeps its default.

## What this package does not do

- It has no UE manager. The `ues` object given to `Server` must be
  supplied by the caller, offering `list()`, `spawn(raw_body)` and
  `stop(ue_id)`; without one, listing UEs returns an empty list, spawning
  answers 501 and stopping answers 404. The configuration fields
  `amf_obs_url`, `ue_supervisor_url`, `auto_spawn_default_ue`,
  `default_ue_profile` and `repo_root` are loaded but used by nothing in
  the package.
- It ships no web UI; pass `static_dir` pointing at one you have built.
- It has no NGAP codec and no SCTP transport, and no AMF, SMF, UPF or gNB.
- It installs no commands; the servers are started from Python.