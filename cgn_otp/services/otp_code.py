import secrets
from typing import Callable

from cgn_otp.schemas import is_valid_otp_code

from .exceptions import ConsistencyFault

# Redeclared next to the OtpCode schema pattern; both must change together.
OTP_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
OTP_CODE_LENGTH = 11

RandomBytes = Callable[[int], bytes]


def generate_otp_code(random_bytes: RandomBytes = secrets.token_bytes) -> str:
    """Generate a new random OTP code."""

    buffer = random_bytes(OTP_CODE_LENGTH)
    code = "".join(OTP_ALPHABET[b % len(OTP_ALPHABET)] for b in buffer)
    if not is_valid_otp_code(code):
        # this should never happen
        raise ConsistencyFault(f"FATAL: generate_otp_code generated invalid OTP code [{code}]")
    return code
