"""Key layout of OTP records in the key-value store.

Every live OTP owns at most two keys, written with the same TTL:

* ``OTP_<code>`` holds the JSON encoded payload;
* ``OTP_FISCALCODE_<fiscal code>`` holds the raw code.

The prefixes are shared with the other services reading the same store and
must not change.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from cgn_otp.schemas import OtpPayload

from .otp_codec import PayloadT, decode_otp_payload, encode_otp_payload

if TYPE_CHECKING:
    from cgn_otp.core.kv_store import KeyValueStore

OTP_PREFIX = "OTP_"
OTP_FISCAL_CODE_PREFIX = "OTP_FISCALCODE_"


def otp_key(otp_code: str) -> str:
    return f"{OTP_PREFIX}{otp_code}"


def fiscal_code_key(fiscal_code: str) -> str:
    return f"{OTP_FISCAL_CODE_PREFIX}{fiscal_code}"


async def store_otp_and_related_fiscal_code(
    store: KeyValueStore,
    otp_code: str,
    payload: OtpPayload,
    otp_ttl: int,
) -> bool:
    """Write both keys sequentially; a failed first write skips the second."""

    await store.set_with_expiry(otp_key(otp_code), encode_otp_payload(payload), otp_ttl)
    return await store.set_with_expiry(fiscal_code_key(payload.fiscal_code), otp_code, otp_ttl)


async def retrieve_otp_payload(
    store: KeyValueStore,
    otp_code: str,
    model: type[PayloadT] = OtpPayload,
) -> PayloadT | None:
    raw = await store.get(otp_key(otp_code))
    if raw is None:
        return None
    return decode_otp_payload(raw, model)
