import json
from typing import TypeVar

from pydantic import ValidationError

from cgn_otp.schemas import CommonOtpPayload, OtpPayload

from .exceptions import DecodeError

PayloadT = TypeVar("PayloadT", bound=CommonOtpPayload)


def encode_otp_payload(payload: CommonOtpPayload) -> str:
    return payload.model_dump_json(by_alias=True)


def decode_otp_payload(raw: str, model: type[PayloadT] = OtpPayload) -> PayloadT:
    """Decode a stored payload string into ``model``.

    Parsing and schema validation are separate phases; either failure raises
    ``DecodeError`` and nothing partially decoded is returned.
    """

    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise DecodeError("malformed text") from exc
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise DecodeError("schema mismatch") from exc
