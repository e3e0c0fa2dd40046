"""5GS Session Management messages for PDU sessions (TS 24.501 §8.3)."""

from __future__ import annotations

import ipaddress
from collections.abc import Iterator
from dataclasses import dataclass

from corenet.nas.types import EPD_5GS_SESSION_MANAGEMENT, SNSSAI, NASError

# SM message types (TS 24.501 §9.7).
MSG_TYPE_PDU_SESSION_ESTABLISHMENT_REQUEST = 0xC1
MSG_TYPE_PDU_SESSION_ESTABLISHMENT_ACCEPT = 0xC2
MSG_TYPE_PDU_SESSION_ESTABLISHMENT_REJECT = 0xC3
MSG_TYPE_PDU_SESSION_RELEASE_REQUEST = 0xD1
MSG_TYPE_PDU_SESSION_RELEASE_REJECT = 0xD2
MSG_TYPE_PDU_SESSION_RELEASE_COMMAND = 0xD3
MSG_TYPE_PDU_SESSION_RELEASE_COMPLETE = 0xD4

# Private IE carrying the gNB downlink GTP-U TEID.
IEI_USER_PLANE_DL_TEID = 0x78

IEI_PDU_ADDRESS = 0x29
IEI_DNN = 0x25
IEI_SM_REQUESTED_NSSAI = 0x22

# PDU session type values (TS 24.501 §9.11.4.11).
PDU_SESS_TYPE_IPV4 = 0x01
PDU_SESS_TYPE_IPV6 = 0x02
PDU_SESS_TYPE_IPV4V6 = 0x03
PDU_SESS_TYPE_UNSTRUCTURED = 0x04

# SSC mode values (TS 24.501 §9.11.4.16).
SSC_MODE_1 = 0x01
SSC_MODE_2 = 0x02
SSC_MODE_3 = 0x03

_PTI = 0x01


@dataclass
class PDUSessionEstablishmentRequest:
    """Decoded PDU Session Establishment Request (TS 24.501 §8.3.1)."""

    pdu_session_id: int
    pdu_session_type: int
    ssc_mode: int
    requested_dnn: str = ""
    snssai: SNSSAI | None = None


@dataclass
class PDUSessionEstablishmentAccept:
    """Decoded PDU Session Establishment Accept (TS 24.501 §8.3.2)."""

    pdu_session_id: int = 0
    pdu_session_type: int = 0
    authorized_qos_rules: bytes = b""
    session_ambr: bytes = b""
    allocated_ip: str = ""
    snssai: SNSSAI | None = None
    dnn: str = ""
    downlink_teid: int = 0


def build_pdu_session_establishment_request(pdu_session_id: int, dnn: str) -> bytes:
    """Encode a PDU Session Establishment Request with optional DNN."""
    msg = bytearray(
        [
            EPD_5GS_SESSION_MANAGEMENT,
            pdu_session_id,
            _PTI,
            MSG_TYPE_PDU_SESSION_ESTABLISHMENT_REQUEST,
            (PDU_SESS_TYPE_IPV4 & 0x0F) | ((SSC_MODE_1 & 0x07) << 4),
        ]
    )
    if dnn:
        dnn_bytes = encode_dnn(dnn)
        msg += bytes([IEI_DNN, len(dnn_bytes) & 0xFF]) + dnn_bytes
    # Requested NSSAI: one S-NSSAI with SST=1 (eMBB)
    msg += bytes([IEI_SM_REQUESTED_NSSAI, 0x02, 0x01, 0x01])
    return bytes(msg)


def build_pdu_session_establishment_accept(
    pdu_session_id: int, allocated_ip: str, dnn: str
) -> bytes:
    """Encode a PDU Session Establishment Accept carrying the UE address and DNN."""
    msg = bytearray(
        [
            EPD_5GS_SESSION_MANAGEMENT,
            pdu_session_id,
            _PTI,
            MSG_TYPE_PDU_SESSION_ESTABLISHMENT_ACCEPT,
            PDU_SESS_TYPE_IPV4,
        ]
    )
    qos_rules = _build_default_qos_rules()
    msg += len(qos_rules).to_bytes(2, "big") + qos_rules
    # Session AMBR: 100 Mbps in each direction (unit 6 = 1 Mbps, value 100).
    msg += bytes([0x06, 0x06, 0x00, 0x64, 0x06, 0x00, 0x64])

    if allocated_ip:
        ip_bytes = _encode_ipv4(allocated_ip)
        if ip_bytes is not None:
            msg += bytes([IEI_PDU_ADDRESS, 1 + len(ip_bytes), PDU_SESS_TYPE_IPV4])
            msg += ip_bytes

    if dnn:
        dnn_bytes = encode_dnn(dnn)
        msg += bytes([IEI_DNN, len(dnn_bytes) & 0xFF]) + dnn_bytes

    return bytes(msg)


def append_downlink_teid(msg: bytes, dl_teid: int) -> bytes:
    """Append the user-plane DL TEID IE to an encoded accept; a zero TEID adds nothing."""
    if dl_teid == 0:
        return bytes(msg)
    if not 0 <= dl_teid <= 0xFFFFFFFF:
        raise NASError(f"downlink TEID out of range: {dl_teid}")
    return bytes(msg) + bytes([IEI_USER_PLANE_DL_TEID, 4]) + dl_teid.to_bytes(4, "big")


def build_pdu_session_establishment_reject(pdu_session_id: int, cause: int) -> bytes:
    """Encode a PDU Session Establishment Reject (TS 24.501 §8.3.3)."""
    return bytes(
        [
            EPD_5GS_SESSION_MANAGEMENT,
            pdu_session_id,
            _PTI,
            MSG_TYPE_PDU_SESSION_ESTABLISHMENT_REJECT,
            cause,
        ]
    )


def decode_pdu_session_establishment_request(data: bytes) -> PDUSessionEstablishmentRequest:
    """Parse a PDU Session Establishment Request."""
    data = bytes(data)
    if len(data) < 5:
        raise NASError(f"PDU session request too short: {len(data)} bytes")

    req = PDUSessionEstablishmentRequest(
        pdu_session_id=data[1],
        pdu_session_type=data[4] & 0x0F,
        ssc_mode=(data[4] >> 4) & 0x07,
    )
    for iei, value in _iter_ies(data, 5):
        if iei == IEI_DNN:
            req.requested_dnn = decode_dnn(value)
    return req


def encode_dnn(dnn: str) -> bytes:
    """Encode a DNN as a length byte followed by its bytes."""
    raw = dnn.encode("utf-8")
    return bytes([len(raw) & 0xFF]) + raw


def decode_dnn(data: bytes) -> str:
    """Decode a length-prefixed DNN; return "" when the data is empty or truncated."""
    if len(data) < 1:
        return ""
    length = data[0]
    if length + 1 > len(data):
        return ""
    return bytes(data[1 : 1 + length]).decode("utf-8", errors="replace")


def _iter_ies(data: bytes, offset: int) -> Iterator[tuple[int, bytes]]:
    """Yield (IEI, value) pairs of type-length-value IEs starting at offset."""
    while offset < len(data) - 1:
        iei = data[offset]
        length = data[offset + 1]
        offset += 2
        if offset + length > len(data):
            return
        yield iei, data[offset : offset + length]
        offset += length


def _build_default_qos_rules() -> bytes:
    """One default QoS rule: ID 1, create, match-all filter, QFI 1."""
    return bytes([0x01, 0x00, 0x06, 0x31, 0x01, 0x01, 0x01, 0x01, 0x01])


def _encode_ipv4(ip: str) -> bytes | None:
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return None
    if isinstance(addr, ipaddress.IPv6Address):
        mapped = addr.ipv4_mapped
        if mapped is None:
            return None
        addr = mapped
    return addr.packed