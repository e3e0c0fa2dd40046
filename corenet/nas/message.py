"""NAS 5GS mobility management messages for registration and NAS transport (TS 24.501 §8.2)."""

from __future__ import annotations

from dataclasses import dataclass, field

from corenet.nas.session import (
    IEI_DNN,
    IEI_PDU_ADDRESS,
    IEI_USER_PLANE_DL_TEID,
    PDUSessionEstablishmentAccept,
    _iter_ies,
    decode_dnn,
)
from corenet.nas.types import (
    EPD_5GS_MOBILITY_MANAGEMENT,
    FOLLOW_ON_REQUEST_PENDING,
    GUTI5G,
    IEI_5GS_GUTI,
    IEI_ALLOWED_NSSAI,
    IEI_T3512_VALUE,
    MSG_TYPE_REGISTRATION_ACCEPT,
    MSG_TYPE_REGISTRATION_COMPLETE,
    MSG_TYPE_REGISTRATION_REJECT,
    MSG_TYPE_REGISTRATION_REQUEST,
    SD_NOT_SET,
    SECURITY_HEADER_TYPE_PLAIN,
    SNSSAI,
    SUPI,
    NASError,
    UESecurityCapability,
)

MSG_TYPE_UL_NAS_TRANSPORT = 0x67
MSG_TYPE_DL_NAS_TRANSPORT = 0x68
PAYLOAD_CONTAINER_N1_SM_INFO = 0x01
IEI_PDU_SESSION_ID = 0x12
IEI_UE_SECURITY_CAPABILITY = 0x2E
IEI_REQUESTED_NSSAI = 0x2F

# NAS key set identifier meaning "no key available".
_NGKSI_NO_KEY = 0x0E
# GPRS timer 3 value advertised for T3512.
_T3512_DEFAULT = 0x2D
# Fixed test PLMN 001-01 used in the null-scheme SUCI.
_SUCI_PLMN_PREFIX = "imsi-00101"


@dataclass
class Message:
    """Header common to every NAS message plus the remaining raw IE bytes."""

    epd: int
    security_header: int
    message_type: int
    payload: bytes = b""


@dataclass
class RegistrationRequest:
    """Decoded 5GS Registration Request (TS 24.501 §8.2.6)."""

    registration_type: int = 0
    follow_on_request: bool = False
    nas_key_set_id: int = 0
    mobile_identity: bytes = b""
    ue_sec_capability: UESecurityCapability | None = None
    requested_nssai: list[SNSSAI] = field(default_factory=list)
    ue_capabilities: bytes = b""


@dataclass
class RegistrationAccept:
    """Decoded 5GS Registration Accept (TS 24.501 §8.2.7)."""

    registration_result: int = 0
    guti5g: GUTI5G | None = None
    allowed_nssai: list[SNSSAI] = field(default_factory=list)
    tai_list: bytes = b""
    t3512: int = 0


@dataclass
class RegistrationReject:
    """5GS Registration Reject carrying a 5GMM cause (TS 24.501 §8.2.8)."""

    cause: int


def _header(message_type: int) -> bytearray:
    return bytearray([EPD_5GS_MOBILITY_MANAGEMENT, SECURITY_HEADER_TYPE_PLAIN, message_type])


# --- Encoders ---


def build_registration_request(supi: str, reg_type: int, follow_on: bool) -> bytes:
    """Encode a Registration Request with a null-scheme SUCI, UE security capability and NSSAI."""
    msg = _header(MSG_TYPE_REGISTRATION_REQUEST)
    reg_type_byte = reg_type & 0x07
    if follow_on:
        reg_type_byte |= FOLLOW_ON_REQUEST_PENDING
    msg.append(reg_type_byte)
    msg.append(_NGKSI_NO_KEY)

    identity = encode_supi(supi)
    msg.append(len(identity) & 0xFF)
    msg += identity

    # UE security capability: NEA0/NEA2 and NIA0/NIA2 advertised.
    msg += bytes([IEI_UE_SECURITY_CAPABILITY, 0x02, 0xC0, 0xC0])
    # Requested NSSAI: one S-NSSAI with SST=1 (eMBB).
    msg += bytes([IEI_REQUESTED_NSSAI, 0x02, 0x01, 0x01])
    return bytes(msg)


def build_registration_accept(
    result: int, guti: GUTI5G | None, allowed_nssai: list[SNSSAI] | None
) -> bytes:
    """Encode a Registration Accept with optional GUTI and allowed NSSAI plus T3512."""
    msg = _header(MSG_TYPE_REGISTRATION_ACCEPT)
    msg.append(result & 0xFF)

    if guti is not None:
        guti_bytes = encode_guti(guti)
        msg += bytes([IEI_5GS_GUTI, len(guti_bytes)]) + guti_bytes

    if allowed_nssai:
        nssai_bytes = encode_nssai(allowed_nssai)
        msg += bytes([IEI_ALLOWED_NSSAI, len(nssai_bytes) & 0xFF]) + nssai_bytes

    msg += bytes([IEI_T3512_VALUE, 0x01, _T3512_DEFAULT])
    return bytes(msg)


def build_registration_complete() -> bytes:
    """Encode a Registration Complete (header only)."""
    return bytes(_header(MSG_TYPE_REGISTRATION_COMPLETE))


def build_registration_reject(cause: int) -> bytes:
    """Encode a Registration Reject with the given 5GMM cause."""
    return bytes(_header(MSG_TYPE_REGISTRATION_REJECT) + bytes([cause & 0xFF]))


def _build_nas_transport(message_type: int, pdu_session_id: int, sm_payload: bytes) -> bytes:
    sm_payload = bytes(sm_payload)
    msg = _header(message_type)
    msg.append(PAYLOAD_CONTAINER_N1_SM_INFO)
    msg += bytes([(len(sm_payload) >> 8) & 0xFF, len(sm_payload) & 0xFF])
    msg += sm_payload
    msg += bytes([IEI_PDU_SESSION_ID, pdu_session_id & 0xFF])
    return bytes(msg)


def build_ul_nas_transport_mm(pdu_session_id: int, sm_payload: bytes) -> bytes:
    """Wrap an SM message in an UL NAS Transport (TS 24.501 §8.2.14)."""
    return _build_nas_transport(MSG_TYPE_UL_NAS_TRANSPORT, pdu_session_id, sm_payload)


def build_dl_nas_transport_mm(pdu_session_id: int, sm_payload: bytes) -> bytes:
    """Wrap an SM message in a DL NAS Transport (TS 24.501 §8.2.15)."""
    return _build_nas_transport(MSG_TYPE_DL_NAS_TRANSPORT, pdu_session_id, sm_payload)


# --- Decoders ---


def decode(data: bytes) -> Message:
    """Parse the three-byte header of any NAS message."""
    data = bytes(data)
    if len(data) < 3:
        raise NASError(f"NAS message too short: {len(data)} bytes")
    return Message(epd=data[0], security_header=data[1], message_type=data[2], payload=data[3:])


def decode_registration_request(payload: bytes) -> RegistrationRequest:
    """Parse the payload of a Registration Request (bytes after the header)."""
    payload = bytes(payload)
    if len(payload) < 2:
        raise NASError("registration request payload too short")

    req = RegistrationRequest(
        registration_type=payload[0] & 0x07,
        follow_on_request=bool(payload[0] & 0x08),
        nas_key_set_id=payload[1],
    )

    offset = 2
    if offset < len(payload):
        id_len = payload[offset]
        offset += 1
        if offset + id_len <= len(payload):
            req.mobile_identity = payload[offset : offset + id_len]
            offset += id_len

    for iei, value in _iter_ies(payload, offset):
        if iei == IEI_UE_SECURITY_CAPABILITY:
            if len(value) >= 2:
                req.ue_sec_capability = UESecurityCapability(
                    nea0=bool(value[0] & 0x80),
                    nea2=bool(value[0] & 0x20),
                    nia0=bool(value[1] & 0x80),
                    nia2=bool(value[1] & 0x20),
                )
        elif iei == IEI_REQUESTED_NSSAI:
            req.requested_nssai = decode_nssai(value)
    return req


def decode_registration_accept(payload: bytes) -> RegistrationAccept:
    """Parse the payload of a Registration Accept (bytes after the header)."""
    payload = bytes(payload)
    if len(payload) < 1:
        raise NASError("registration accept payload too short")

    acc = RegistrationAccept(registration_result=payload[0] & 0x07)
    for iei, value in _iter_ies(payload, 1):
        if iei == IEI_5GS_GUTI:
            acc.guti5g = decode_guti(value)
        elif iei == IEI_ALLOWED_NSSAI:
            acc.allowed_nssai = decode_nssai(value)
        elif iei == IEI_T3512_VALUE and len(value) >= 1:
            acc.t3512 = value[0]
    return acc


def decode_dl_nas_transport(data: bytes) -> tuple[int, bytes]:
    """Parse a DL NAS Transport and return (PDU session ID, SM payload)."""
    data = bytes(data)
    if len(data) < 6:
        raise NASError(f"nas: DL NAS Transport too short: {len(data)} bytes")
    if data[2] != MSG_TYPE_DL_NAS_TRANSPORT:
        raise NASError(f"nas: expected DL NAS Transport (0x68), got 0x{data[2]:02X}")
    container_len = (data[4] << 8) | data[5]
    end = 6 + container_len
    if end > len(data):
        raise NASError("nas: DL NAS Transport container length exceeds message")
    sm_payload = data[6:end]

    pdu_session_id = 0
    for offset in range(end, len(data) - 1):
        if data[offset] == IEI_PDU_SESSION_ID:
            pdu_session_id = data[offset + 1]
            break
    return pdu_session_id, sm_payload


def decode_pdu_session_establishment_accept(data: bytes) -> PDUSessionEstablishmentAccept:
    """Parse a PDU Session Establishment Accept, extracting UE IP, DNN and DL TEID."""
    data = bytes(data)
    if len(data) < 5:
        raise NASError(f"nas: PDU Session Accept too short: {len(data)} bytes")
    acc = PDUSessionEstablishmentAccept(pdu_session_id=data[1])

    offset = 5
    if offset + 2 > len(data):
        return acc
    qos_len = (data[offset] << 8) | data[offset + 1]
    offset += 2 + qos_len
    if offset + 1 > len(data):
        return acc
    offset += 1 + data[offset]

    for iei, value in _iter_ies(data, offset):
        if iei == IEI_PDU_ADDRESS:
            if len(value) >= 5 and value[0] == 0x01:
                acc.allocated_ip = ".".join(str(b) for b in value[1:5])
        elif iei == IEI_DNN:
            acc.dnn = decode_dnn(value)
        elif iei == IEI_USER_PLANE_DL_TEID and len(value) >= 4:
            acc.downlink_teid = int.from_bytes(value[:4], "big")
    return acc


# --- Identity helpers ---


def decode_supi_from_mobile_identity(identity: bytes) -> SUPI:
    """Recover the SUPI from a null-scheme SUCI produced by encode_supi."""
    identity = bytes(identity)
    if len(identity) < 9:
        raise NASError(f"mobile identity too short ({len(identity)} bytes)")
    id_type = identity[0] & 0x07
    if id_type != 0x01:
        raise NASError(f"unsupported mobile identity type 0x{id_type:02x}")
    return SUPI(_SUCI_PLMN_PREFIX + decode_msin(identity[8:]))


def encode_supi(supi: str) -> bytes:
    """Encode a SUPI as a null-scheme SUCI for test PLMN 001-01."""
    result = bytearray([0x01])
    result += bytes([0x00, 0xF1, 0x10])  # PLMN: MCC=001 MNC=01
    result += bytes([0x00, 0x00])  # routing indicator
    result.append(0x00)  # protection scheme: null
    result.append(0x00)  # home network public key ID

    s = str(supi)
    if len(s) > 5 and s[:5] == "imsi-":
        s = s[5:]
    if len(s) > 10:
        s = s[-10:]
    result += encode_msin(s)
    return bytes(result)


def encode_msin(msin: str) -> bytes:
    """Encode a digit string as BCD pairs, padding an odd final digit with 0xF."""
    raw = msin.encode("utf-8")
    result = bytearray()
    for i in range(0, len(raw), 2):
        b = (raw[i] - 0x30) & 0xFF
        if i + 1 < len(raw):
            b |= (((raw[i + 1] - 0x30) & 0xFF) << 4) & 0xFF
        else:
            b |= 0xF0
        result.append(b)
    return bytes(result)


def decode_msin(data: bytes) -> str:
    """Decode BCD digits, skipping filler nibbles above 9."""
    digits = []
    for b in bytes(data):
        for nibble in (b & 0x0F, (b >> 4) & 0x0F):
            if nibble <= 9:
                digits.append(str(nibble))
    if not digits:
        raise NASError("empty MSIN in mobile identity")
    return "".join(digits)


def encode_guti(guti: GUTI5G) -> bytes:
    """Encode a 5G-GUTI as an 11-byte mobile identity value."""
    plmn = guti.plmn
    if len(plmn) == 5:
        plmn = plmn[:3] + "f" + plmn[3:]
    if len(plmn) < 6:
        raise NASError(f"invalid PLMN {guti.plmn!r}")
    raw = plmn.encode("utf-8")

    def digit(i: int) -> int:
        return (raw[i] - 0x30) & 0xFF

    def filler(i: int) -> int:
        return 0x0F if raw[i] in b"fF" else digit(i)

    result = bytearray([0xF6])
    result += bytes(
        [
            ((digit(1) << 4) | digit(0)) & 0xFF,
            ((filler(3) << 4) | digit(2)) & 0xFF,
            ((digit(5) << 4) | digit(4)) & 0xFF,
        ]
    )
    result.append(guti.amf_region & 0xFF)
    result.append((guti.amf_set >> 2) & 0xFF)
    result.append((((guti.amf_set & 0x03) << 6) | (guti.amf_ptr & 0x3F)) & 0xFF)
    result += guti.tmsi.to_bytes(4, "big")
    return bytes(result)


def decode_guti(data: bytes) -> GUTI5G | None:
    """Decode a 5G-GUTI value; return None when the data is too short."""
    data = bytes(data)
    if len(data) < 11:
        return None
    b0, b1, b2 = data[1], data[2], data[3]
    mcc = [b0 & 0x0F, (b0 >> 4) & 0x0F, b1 & 0x0F]
    mnc3 = (b1 >> 4) & 0x0F
    mnc12 = [b2 & 0x0F, (b2 >> 4) & 0x0F]
    digits = mcc + mnc12 if mnc3 == 0x0F else mcc + [mnc3] + mnc12
    return GUTI5G(
        plmn="".join(str(d) for d in digits),
        amf_region=data[4],
        amf_set=((data[5] << 2) | (data[6] >> 6)) & 0xFF,
        amf_ptr=data[6] & 0x3F,
        tmsi=int.from_bytes(data[7:11], "big"),
    )


def encode_nssai(nssai: list[SNSSAI]) -> bytes:
    """Encode S-NSSAIs, each as SST only or SST plus 3-byte SD."""
    result = bytearray()
    for s in nssai:
        if s.sd in (SD_NOT_SET, 0):
            result += bytes([0x01, s.sst])
        else:
            result += bytes([0x04, s.sst]) + s.sd.to_bytes(3, "big")
    return bytes(result)


def decode_nssai(data: bytes) -> list[SNSSAI]:
    """Decode length-prefixed S-NSSAI entries, stopping at a truncated entry."""
    data = bytes(data)
    result: list[SNSSAI] = []
    offset = 0
    while offset < len(data):
        length = data[offset]
        offset += 1
        if offset + length > len(data):
            break
        entry = data[offset : offset + length]
        offset += length
        sst = entry[0] if len(entry) >= 1 else 0
        sd = int.from_bytes(entry[1:4], "big") if len(entry) >= 4 else SD_NOT_SET
        result.append(SNSSAI(sst=sst, sd=sd))
    return result