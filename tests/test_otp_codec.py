import json
from datetime import datetime, timezone

import pytest

from cgn_otp.schemas import CommonOtpPayload, OtpPayload
from cgn_otp.services import exceptions
from cgn_otp.services.otp_codec import decode_otp_payload, encode_otp_payload

from conftest import A_FISCAL_CODE, AN_OTP_TTL


def _payload(**overrides) -> OtpPayload:
    data = {
        "expires_at": datetime(2024, 5, 1, 12, 0, 10, 123456, tzinfo=timezone.utc),
        "fiscal_code": A_FISCAL_CODE,
        "ttl": AN_OTP_TTL,
    }
    data.update(overrides)
    return OtpPayload(**data)


def test_encode_uses_wire_field_names():
    encoded = json.loads(encode_otp_payload(_payload()))

    assert set(encoded) == {"expiresAt", "fiscalCode", "ttl"}
    assert encoded["fiscalCode"] == A_FISCAL_CODE
    assert encoded["ttl"] == AN_OTP_TTL


def test_decode_reverses_encode():
    payload = _payload()
    assert decode_otp_payload(encode_otp_payload(payload)) == payload

    zero_ttl = _payload(ttl=0)
    assert decode_otp_payload(encode_otp_payload(zero_ttl)) == zero_ttl


def test_decode_accepts_javascript_iso_timestamps():
    raw = '{"expiresAt":"2024-05-01T12:00:10.000Z","fiscalCode":"%s","ttl":10}' % A_FISCAL_CODE

    payload = decode_otp_payload(raw)

    assert payload.expires_at == datetime(2024, 5, 1, 12, 0, 10, tzinfo=timezone.utc)
    assert payload.fiscal_code == A_FISCAL_CODE
    assert payload.ttl == 10


def test_common_payload_does_not_require_ttl():
    raw = json.dumps({"expiresAt": "2024-05-01T12:00:10Z", "fiscalCode": A_FISCAL_CODE})

    payload = decode_otp_payload(raw, CommonOtpPayload)
    assert payload.fiscal_code == A_FISCAL_CODE

    with pytest.raises(exceptions.DecodeError) as exc_info:
        decode_otp_payload(raw, OtpPayload)
    assert str(exc_info.value) == "schema mismatch"


@pytest.mark.parametrize("raw", ["", "not json", "{\"expiresAt\": ", "{'single': 'quotes'}"])
def test_unparsable_text_is_malformed(raw):
    with pytest.raises(exceptions.DecodeError) as exc_info:
        decode_otp_payload(raw)

    assert str(exc_info.value) == "malformed text"


@pytest.mark.parametrize(
    "data",
    [
        [],
        42,
        {"fiscalCode": A_FISCAL_CODE, "ttl": 10},
        {"expiresAt": "2024-05-01T12:00:10Z", "ttl": 10},
        {"expiresAt": "not a date", "fiscalCode": A_FISCAL_CODE, "ttl": 10},
        {"expiresAt": "2024-05-01T12:00:10", "fiscalCode": A_FISCAL_CODE, "ttl": 10},
        {"expiresAt": "2024-05-01T12:00:10Z", "fiscalCode": "not-a-fiscal-code", "ttl": 10},
        {"expiresAt": "2024-05-01T12:00:10Z", "fiscalCode": A_FISCAL_CODE, "ttl": -1},
        {"expiresAt": "2024-05-01T12:00:10Z", "fiscalCode": A_FISCAL_CODE, "ttl": "10"},
        {"expiresAt": "2024-05-01T12:00:10Z", "fiscalCode": A_FISCAL_CODE, "ttl": 1.5},
    ],
)
def test_shape_violations_are_schema_mismatches(data):
    with pytest.raises(exceptions.DecodeError) as exc_info:
        decode_otp_payload(json.dumps(data))

    assert str(exc_info.value) == "schema mismatch"
