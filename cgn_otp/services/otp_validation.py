from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

from cgn_otp.core.logging import log_with_privacy
from cgn_otp.schemas import (
    CommonOtpPayload,
    Otp,
    OtpPayload,
    OtpValidationResponse,
    ValidateOtpPayload,
    is_valid_otp_code,
)

from .exceptions import ConsistencyFault, DecodeError, TransportError
from .otp_storage import fiscal_code_key, otp_key, retrieve_otp_payload
from .results import InternalError, OtpNotFound, ValidateOtpResult

if TYPE_CHECKING:
    from cgn_otp.core.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class OtpValidationService:
    def __init__(self, store: KeyValueStore, *, clock: Clock = utc_now):
        self.store = store
        self._clock = clock

    async def retrieve_otp_by_fiscal_code(self, fiscal_code: str) -> Otp | None:
        """Look an OTP up through its ``OTP_FISCALCODE_`` reverse key.

        Returns ``None`` when either key is missing, since both expire on
        their own. Raises ``TransportError`` or ``DecodeError``.
        """

        otp_code = await self.store.get(fiscal_code_key(fiscal_code))
        if otp_code is None:
            return None
        if not is_valid_otp_code(otp_code):
            raise DecodeError("schema mismatch")
        payload = await retrieve_otp_payload(self.store, otp_code, OtpPayload)
        if payload is None:
            return None
        return Otp(code=otp_code, expires_at=payload.expires_at, ttl=payload.ttl)

    async def validate(self, payload: ValidateOtpPayload) -> ValidateOtpResult:
        return await self.validate_otp(payload.otp_code, invalidate=payload.invalidate_otp)

    async def validate_otp(self, otp_code: str, invalidate: bool = False) -> ValidateOtpResult:
        if not is_valid_otp_code(otp_code):
            logger.warning("validate_otp|ERROR=malformed OTP code rejected before lookup")
            return InternalError("Invalid OTP code")

        try:
            payload = await retrieve_otp_payload(self.store, otp_code, CommonOtpPayload)
        except (TransportError, DecodeError) as exc:
            log_with_privacy(logger, "validate_otp|retrieve", exc)
            return InternalError("Cannot validate OTP Code")
        if payload is None:
            return OtpNotFound()

        if not invalidate:
            return OtpValidationResponse(expires_at=payload.expires_at)

        try:
            await self._invalidate(otp_code, payload.fiscal_code)
        except (TransportError, ConsistencyFault) as exc:
            message = log_with_privacy(logger, "validate_otp|invalidate", exc, payload.fiscal_code)
            return InternalError(message)
        logger.info("OTP invalidated")
        return OtpValidationResponse(expires_at=self._clock())

    async def _invalidate(self, otp_code: str, fiscal_code: str) -> None:
        # No rollback: a failure on the second key leaves it to expire by TTL.
        for key in (otp_key(otp_code), fiscal_code_key(fiscal_code)):
            if not await self.store.delete(key):
                raise ConsistencyFault(f"unexpected delete outcome [{key}]")
