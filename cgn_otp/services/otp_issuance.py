from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Callable

from cgn_otp.core.logging import log_with_privacy
from cgn_otp.schemas import Otp, OtpPayload, is_valid_fiscal_code, is_valid_otp_code

from .exceptions import ConsistencyFault, DecodeError, TransportError
from .otp_code import generate_otp_code
from .otp_storage import store_otp_and_related_fiscal_code
from .otp_validation import Clock, OtpValidationService, utc_now
from .results import GenerateOtpResult, InternalError

if TYPE_CHECKING:
    from cgn_otp.core.kv_store import KeyValueStore

logger = logging.getLogger(__name__)


class OtpIssuanceService:
    def __init__(
        self,
        store: KeyValueStore,
        otp_ttl: int,
        *,
        code_generator: Callable[[], str] = generate_otp_code,
        clock: Clock = utc_now,
        validation_service: OtpValidationService | None = None,
    ):
        if otp_ttl < 0:
            raise ValueError("otp_ttl must be a non-negative number of seconds")
        self.store = store
        self.otp_ttl = otp_ttl
        self._code_generator = code_generator
        self._clock = clock
        self._validation = validation_service or OtpValidationService(store, clock=clock)

    async def ensure_otp(self, fiscal_code: str) -> GenerateOtpResult:
        """Return the live OTP for ``fiscal_code``, creating one if needed.

        An existing OTP is returned untouched: no write and no TTL refresh.
        """

        if not is_valid_fiscal_code(fiscal_code):
            logger.warning("ensure_otp|ERROR=malformed fiscal code rejected before lookup")
            return InternalError("Invalid fiscal code")

        try:
            existing = await self._validation.retrieve_otp_by_fiscal_code(fiscal_code)
        except (TransportError, DecodeError) as exc:
            message = log_with_privacy(logger, "ensure_otp|retrieve", exc, fiscal_code)
            return InternalError(f"Cannot retrieve OTP from fiscalCode| {message}")

        if existing is not None:
            logger.debug("Reusing OTP valid until %s", existing.expires_at.isoformat())
            return existing
        return await self._generate_new_otp_and_store(fiscal_code)

    async def _generate_new_otp_and_store(self, fiscal_code: str) -> GenerateOtpResult:
        try:
            otp_code = self._code_generator()
            if not is_valid_otp_code(otp_code):
                raise ConsistencyFault(f"FATAL: code generator returned invalid OTP code [{otp_code}]")
        except (ConsistencyFault, OSError) as exc:
            message = log_with_privacy(logger, "ensure_otp|generate", exc)
            return InternalError(f"Cannot generate OTP Code| {message}")

        expires_at = self._clock() + timedelta(seconds=self.otp_ttl)
        new_otp = Otp(code=otp_code, expires_at=expires_at, ttl=self.otp_ttl)
        payload = OtpPayload(expires_at=expires_at, fiscal_code=fiscal_code, ttl=self.otp_ttl)

        try:
            await store_otp_and_related_fiscal_code(self.store, otp_code, payload, self.otp_ttl)
        except TransportError as exc:
            message = log_with_privacy(logger, "ensure_otp|store", exc, fiscal_code)
            return InternalError(message)

        logger.info("New OTP stored, expires at %s", expires_at.isoformat())
        return new_otp
