"""Shared NAS constants, identifiers and value types (TS 24.501)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NewType

# Extended Protocol Discriminator values (TS 24.007 §11.2.3.1).
EPD_5GS_MOBILITY_MANAGEMENT = 0x7E
EPD_5GS_SESSION_MANAGEMENT = 0x2E

# Security Header Type values (TS 24.501 §9.3.1).
SECURITY_HEADER_TYPE_PLAIN = 0x00
SECURITY_HEADER_TYPE_INTEGRITY_PROTECTED = 0x01
SECURITY_HEADER_TYPE_INTEGRITY_AND_CIPHERED = 0x02

# 5GS Mobility Management message types (TS 24.501 §9.7).
MSG_TYPE_REGISTRATION_REQUEST = 0x41
MSG_TYPE_REGISTRATION_ACCEPT = 0x42
MSG_TYPE_REGISTRATION_COMPLETE = 0x43
MSG_TYPE_REGISTRATION_REJECT = 0x44
MSG_TYPE_DEREGISTRATION_REQUEST_UE_ORIGINATING = 0x45
MSG_TYPE_SERVICE_REQUEST = 0x4C
MSG_TYPE_IDENTITY_REQUEST = 0x5B
MSG_TYPE_IDENTITY_RESPONSE = 0x5C
MSG_TYPE_AUTHENTICATION_REQUEST = 0x56
MSG_TYPE_AUTHENTICATION_RESPONSE = 0x57

# Registration type values (TS 24.501 §9.11.3.7).
REGISTRATION_TYPE_INITIAL_REGISTRATION = 0x01
REGISTRATION_TYPE_MOBILITY_REGISTRATION = 0x02
REGISTRATION_TYPE_PERIODIC_REGISTRATION = 0x03
REGISTRATION_TYPE_EMERGENCY_REGISTRATION = 0x04

# Follow-on request bit (TS 24.501 §9.11.3.7).
FOLLOW_ON_REQUEST_PENDING = 0x08
FOLLOW_ON_REQUEST_NO_PENDING = 0x00

# 5GS registration result values (TS 24.501 §9.11.3.6).
REGISTRATION_RESULT_3GPP = 0x01
REGISTRATION_RESULT_NON_3GPP = 0x02
REGISTRATION_RESULT_3GPP_AND_NON_3GPP = 0x03

# 5GMM cause values for Registration Reject (TS 24.501 §9.11.3.2).
CAUSE_ILLEGAL_UE = 0x03
CAUSE_ILLEGAL_ME = 0x06
CAUSE_5GS_SERVICES_NOT_ALLOWED = 0x07
CAUSE_UE_IDENTITY_NOT_DERIVED = 0x09
CAUSE_IMPLICITLY_DEREGISTERED = 0x0A
CAUSE_PLMN_NOT_ALLOWED = 0x0B
CAUSE_TRACKING_AREA_NOT_ALLOWED = 0x0C
CAUSE_ROAMING_NOT_ALLOWED_IN_TA = 0x0D
CAUSE_NO_SUITABLE_CELLS_IN_TA = 0x0F
CAUSE_CONGESTION = 0x16
CAUSE_NOT_AUTHORIZED_FOR_THIS_CSG = 0x19
CAUSE_INSUFFICIENT_RESOURCES = 0x1A
CAUSE_SERVICE_OPTION_NOT_SUPPORTED = 0x20

# Information element identifiers used in registration messages (TS 24.501 §9.11).
IEI_5GS_GUTI = 0x77
IEI_ALLOWED_NSSAI = 0x15
IEI_CONFIGURED_NSSAI = 0x31
IEI_NETWORK_SLICING_INDICATION = 0x9
IEI_T3512_VALUE = 0x5E
IEI_NON_CURRENT_NATIVE_NAS_KEY_SET_IDENTIFIER = 0xC
IEI_5GS_DRX_PARAMETERS = 0x51
IEI_EAP_MESSAGE = 0x78
IEI_OPERATOR_DEFINED_ACCESS_CATEGORY_DEFINITIONS = 0x76
IEI_NEGOTIATED_EXTENDED_PDU_SESSION_ID = 0x60
IEI_TAI_LIST = 0x54
IEI_MOBILE_IDENTITY = 0x77

# Slice differentiator value meaning "no SD present".
SD_NOT_SET = 0xFFFFFF

#: Subscription Permanent Identifier, e.g. "imsi-001010000000001".
SUPI = NewType("SUPI", str)


class NASError(ValueError):
    """Raised when a NAS message or value cannot be encoded or decoded."""


def _check_range(name: str, value: int, upper: int) -> None:
    if not 0 <= value <= upper:
        raise NASError(f"{name} out of range 0..{upper:#x}: {value}")


@dataclass(frozen=True)
class GUTI5G:
    """5G Globally Unique Temporary Identifier (TS 23.003 §2.10)."""

    plmn: str
    amf_region: int = 0
    amf_set: int = 0
    amf_ptr: int = 0
    tmsi: int = 0

    def __post_init__(self) -> None:
        _check_range("amf_region", self.amf_region, 0xFF)
        _check_range("amf_set", self.amf_set, 0xFF)
        _check_range("amf_ptr", self.amf_ptr, 0xFF)
        _check_range("tmsi", self.tmsi, 0xFFFFFFFF)


@dataclass(frozen=True)
class SNSSAI:
    """Single Network Slice Selection Assistance Information (TS 23.003 §28.4)."""

    sst: int
    sd: int = SD_NOT_SET

    def __post_init__(self) -> None:
        _check_range("sst", self.sst, 0xFF)
        _check_range("sd", self.sd, SD_NOT_SET)


@dataclass(frozen=True)
class UESecurityCapability:
    """Security algorithms supported by the UE (TS 24.501 §9.11.3.54)."""

    nea0: bool = False
    nia2: bool = False
    nea2: bool = False
    nia0: bool = False