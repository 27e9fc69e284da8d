from .otp import (
    CommonOtpPayload,
    FiscalCode,
    Otp,
    OtpCode,
    OtpPayload,
    OtpValidationResponse,
    ValidateOtpPayload,
    is_valid_fiscal_code,
    is_valid_otp_code,
)

__all__ = [
    "CommonOtpPayload",
    "FiscalCode",
    "Otp",
    "OtpCode",
    "OtpPayload",
    "OtpValidationResponse",
    "ValidateOtpPayload",
    "is_valid_fiscal_code",
    "is_valid_otp_code",
]
