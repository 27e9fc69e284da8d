from typing import Annotated

from pydantic import (
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    TypeAdapter,
    ValidationError,
)

OTP_CODE_PATTERN = r"^[A-Z0-9]{11}$"
FISCAL_CODE_PATTERN = (
    r"^[A-Z]{6}[0-9LMNPQRSTUV]{2}[ABCDEHLMPRST][0-9LMNPQRSTUV]{2}[A-Z][0-9LMNPQRSTUV]{3}[A-Z]$"
)

OtpCode = Annotated[str, StringConstraints(pattern=OTP_CODE_PATTERN)]
FiscalCode = Annotated[str, StringConstraints(pattern=FISCAL_CODE_PATTERN)]
OtpTtl = Annotated[int, Field(strict=True, ge=0)]


class Otp(BaseModel):
    code: OtpCode
    expires_at: AwareDatetime
    ttl: OtpTtl


class CommonOtpPayload(BaseModel):
    """Fields every stored OTP payload carries, keyed by ``OTP_<code>``."""

    expires_at: AwareDatetime = Field(..., alias="expiresAt")
    fiscal_code: FiscalCode = Field(..., alias="fiscalCode")

    model_config = ConfigDict(populate_by_name=True)


class OtpPayload(CommonOtpPayload):
    """Payload as written by issuance, including the TTL used at creation."""

    ttl: OtpTtl


class OtpValidationResponse(BaseModel):
    expires_at: AwareDatetime


class ValidateOtpPayload(BaseModel):
    otp_code: OtpCode
    invalidate_otp: bool = False


_otp_code_adapter = TypeAdapter(OtpCode)
_fiscal_code_adapter = TypeAdapter(FiscalCode)


def is_valid_otp_code(value: object) -> bool:
    try:
        _otp_code_adapter.validate_python(value, strict=True)
    except ValidationError:
        return False
    return True


def is_valid_fiscal_code(value: object) -> bool:
    try:
        _fiscal_code_adapter.validate_python(value, strict=True)
    except ValidationError:
        return False
    return True
