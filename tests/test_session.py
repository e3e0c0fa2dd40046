import pytest

from corenet.nas.session import (
    IEI_USER_PLANE_DL_TEID,
    MSG_TYPE_PDU_SESSION_ESTABLISHMENT_ACCEPT,
    MSG_TYPE_PDU_SESSION_ESTABLISHMENT_REJECT,
    PDU_SESS_TYPE_IPV4,
    SSC_MODE_1,
    PDUSessionEstablishmentRequest,
    append_downlink_teid,
    build_pdu_session_establishment_accept,
    build_pdu_session_establishment_reject,
    build_pdu_session_establishment_request,
    decode_dnn,
    decode_pdu_session_establishment_request,
    encode_dnn,
)
from corenet.nas.types import EPD_5GS_SESSION_MANAGEMENT, NASError

ACCEPT_HEAD = bytes([0x2E, 0x01, 0x01, 0xC2, 0x01])
QOS = bytes([0x00, 0x09, 0x01, 0x00, 0x06, 0x31, 0x01, 0x01, 0x01, 0x01, 0x01])
AMBR = bytes([0x06, 0x06, 0x00, 0x64, 0x06, 0x00, 0x64])
PDU_ADDR = bytes([0x29, 0x05, 0x01, 10, 45, 0, 2])
DNN_IE = bytes([0x25, 0x09, 0x08]) + b"internet"


def test_build_request_wire_bytes():
    raw = build_pdu_session_establishment_request(1, "internet")
    expected = (
        bytes([0x2E, 0x01, 0x01, 0xC1, 0x11])
        + DNN_IE
        + bytes([0x22, 0x02, 0x01, 0x01])
    )
    assert raw == expected


def test_request_round_trip():
    raw = build_pdu_session_establishment_request(5, "internet")
    req = decode_pdu_session_establishment_request(raw)
    assert req == PDUSessionEstablishmentRequest(
        pdu_session_id=5,
        pdu_session_type=PDU_SESS_TYPE_IPV4,
        ssc_mode=SSC_MODE_1,
        requested_dnn="internet",
    )


def test_request_without_dnn_has_no_dnn_ie():
    raw = build_pdu_session_establishment_request(1, "")
    assert 0x25 not in raw[5:]
    req = decode_pdu_session_establishment_request(raw)
    assert req.requested_dnn == ""


def test_decode_request_too_short():
    with pytest.raises(NASError, match="too short"):
        decode_pdu_session_establishment_request(bytes([0x2E, 0x01, 0x01, 0xC1]))


def test_decode_request_truncated_ie_is_ignored():
    raw = bytes([0x2E, 0x01, 0x01, 0xC1, 0x11, 0x25, 0x09, 0x08]) + b"inter"
    req = decode_pdu_session_establishment_request(raw)
    assert req.requested_dnn == ""
    assert req.pdu_session_id == 1


def test_build_accept_wire_bytes():
    raw = build_pdu_session_establishment_accept(1, "10.45.0.2", "internet")
    assert raw == ACCEPT_HEAD + QOS + AMBR + PDU_ADDR + DNN_IE
    assert raw[0] == EPD_5GS_SESSION_MANAGEMENT
    assert raw[3] == MSG_TYPE_PDU_SESSION_ESTABLISHMENT_ACCEPT


def test_accept_invalid_ip_omits_address():
    raw = build_pdu_session_establishment_accept(1, "not-an-ip", "internet")
    assert raw == ACCEPT_HEAD + QOS + AMBR + DNN_IE


def test_accept_ipv6_address_omitted():
    raw = build_pdu_session_establishment_accept(1, "2001:db8::1", "")
    assert raw == ACCEPT_HEAD + QOS + AMBR


def test_append_downlink_teid():
    encoded = build_pdu_session_establishment_accept(1, "10.45.0.2", "internet")
    out = append_downlink_teid(encoded, 0x00000042)
    assert out[: len(encoded)] == encoded
    assert out[len(encoded):] == bytes([IEI_USER_PLANE_DL_TEID, 0x04, 0x00, 0x00, 0x00, 0x42])


def test_append_zero_teid_is_noop():
    encoded = build_pdu_session_establishment_accept(1, "10.45.0.2", "internet")
    assert append_downlink_teid(encoded, 0) == encoded


def test_append_teid_out_of_range():
    with pytest.raises(NASError):
        append_downlink_teid(b"\x2e", 0x1_0000_0000)


def test_build_reject():
    raw = build_pdu_session_establishment_reject(3, 0x1A)
    assert raw == bytes(
        [EPD_5GS_SESSION_MANAGEMENT, 3, 0x01, MSG_TYPE_PDU_SESSION_ESTABLISHMENT_REJECT, 0x1A]
    )


def test_encode_dnn():
    assert encode_dnn("internet") == bytes([8]) + b"internet"


@pytest.mark.parametrize("dnn", ["internet", "ims", "a", ""])
def test_dnn_round_trip(dnn):
    assert decode_dnn(encode_dnn(dnn)) == dnn


@pytest.mark.parametrize("data", [b"", bytes([5]) + b"abc"])
def test_decode_dnn_empty_or_truncated(data):
    assert decode_dnn(data) == ""


def test_decode_dnn_ignores_trailing_bytes():
    assert decode_dnn(bytes([3]) + b"imsXYZ") == "ims"