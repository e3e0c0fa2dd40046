import dataclasses

import pytest

from corenet.nas.types import (
    GUTI5G,
    SD_NOT_SET,
    SNSSAI,
    NASError,
    UESecurityCapability,
)


def test_snssai_default_sd_is_not_set():
    s = SNSSAI(sst=1)
    assert s.sd == SD_NOT_SET
    assert s.sd == 0xFFFFFF


def test_snssai_with_sd_keeps_value():
    s = SNSSAI(sst=2, sd=0x000001)
    assert (s.sst, s.sd) == (2, 1)


@pytest.mark.parametrize("sst", [-1, 256])
def test_snssai_rejects_bad_sst(sst):
    with pytest.raises(NASError):
        SNSSAI(sst=sst)


def test_snssai_rejects_sd_wider_than_24_bits():
    with pytest.raises(NASError, match="sd"):
        SNSSAI(sst=1, sd=0x1000000)


def test_snssai_equality_and_hash():
    assert SNSSAI(1) == SNSSAI(1, SD_NOT_SET)
    assert len({SNSSAI(1), SNSSAI(1), SNSSAI(2)}) == 2


def test_guti_fields_and_frozen():
    g = GUTI5G(plmn="00101", amf_region=1, amf_set=1, amf_ptr=0, tmsi=0xDEADBEEF)
    assert g.tmsi == 0xDEADBEEF
    assert g.plmn == "00101"
    with pytest.raises(dataclasses.FrozenInstanceError):
        g.tmsi = 1  # type: ignore[misc]


def test_guti_replace_gives_new_value():
    g = GUTI5G(plmn="00101", tmsi=5)
    h = dataclasses.replace(g, tmsi=6)
    assert g.tmsi == 5
    assert h.tmsi == 6
    assert h.plmn == g.plmn


@pytest.mark.parametrize(
    "kwargs",
    [
        {"amf_region": 256},
        {"amf_set": -1},
        {"amf_ptr": 300},
        {"tmsi": 0x1_0000_0000},
    ],
)
def test_guti_rejects_out_of_range(kwargs):
    with pytest.raises(NASError):
        GUTI5G(plmn="00101", **kwargs)


def test_nas_error_caught_as_value_error():
    with pytest.raises(ValueError, match="tmsi"):
        GUTI5G(plmn="00101", tmsi=-1)


def test_security_capability_defaults_and_flags():
    cap = UESecurityCapability()
    assert (cap.nea0, cap.nea2, cap.nia0, cap.nia2) == (False, False, False, False)
    cap2 = UESecurityCapability(nea0=True, nia2=True)
    assert cap2.nea0 and cap2.nia2
    assert not cap2.nea2 and not cap2.nia0