from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from cgn_otp.schemas import Otp, OtpValidationResponse


@dataclass(frozen=True, slots=True)
class OtpNotFound:
    detail: str = "OTP Not Found or invalid"


@dataclass(frozen=True, slots=True)
class InternalError:
    detail: str


GenerateOtpResult = Union[Otp, InternalError]
ValidateOtpResult = Union[OtpValidationResponse, OtpNotFound, InternalError]
