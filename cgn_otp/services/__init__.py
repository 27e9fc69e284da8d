from .otp_issuance import OtpIssuanceService
from .otp_validation import OtpValidationService
from .results import GenerateOtpResult, InternalError, OtpNotFound, ValidateOtpResult

__all__ = [
    "GenerateOtpResult",
    "InternalError",
    "OtpIssuanceService",
    "OtpNotFound",
    "OtpValidationService",
    "ValidateOtpResult",
]
