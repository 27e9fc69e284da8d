"""Operator commands for issuing, validating and health-checking OTPs."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Sequence

from pydantic import BaseModel

from cgn_otp.core.config import get_settings
from cgn_otp.core.kv_store import KeyValueStore, create_store
from cgn_otp.core.logging import configure_logging
from cgn_otp.services import InternalError, OtpIssuanceService, OtpNotFound, OtpValidationService
from cgn_otp.services.health import check_application_health, check_config_health

logger = logging.getLogger("cgn_otp.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Issue and validate CGN one-time codes.")
    parser.add_argument(
        "--memory",
        action="store_true",
        help="Use a process-local store instead of Redis (dry run)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Return the live OTP for a fiscal code, creating it if needed")
    generate.add_argument("fiscal_code")
    generate.add_argument(
        "--ttl",
        type=int,
        default=None,
        help="OTP lifetime in seconds (default from .env: OTP_TTL_IN_SECONDS)",
    )

    validate = subparsers.add_parser("validate", help="Validate an OTP code")
    validate.add_argument("otp_code")
    validate.add_argument("--invalidate", action="store_true", help="Consume the OTP after a successful validation")

    subparsers.add_parser("health", help="Check configuration and store connectivity")
    return parser


def _render(result: Any) -> tuple[int, dict[str, Any]]:
    if isinstance(result, OtpNotFound):
        return 1, {"error": "not_found", "detail": result.detail}
    if isinstance(result, InternalError):
        return 1, {"error": "internal", "detail": result.detail}
    assert isinstance(result, BaseModel)
    return 0, result.model_dump(mode="json")


async def run(args: argparse.Namespace, store: KeyValueStore) -> tuple[int, dict[str, Any]]:
    if args.command == "health":
        problems = await check_application_health(store)
        return (1 if problems else 0), {"healthy": not problems, "problems": problems}

    if args.command == "generate":
        ttl = args.ttl if args.ttl is not None else get_settings().OTP_TTL_IN_SECONDS
        if ttl < 0:
            return 1, {"error": "internal", "detail": "ttl must be non-negative"}
        result = await OtpIssuanceService(store, ttl).ensure_otp(args.fiscal_code)
        return _render(result)

    result = await OtpValidationService(store).validate_otp(args.otp_code, invalidate=args.invalidate)
    return _render(result)


async def _main(args: argparse.Namespace) -> int:
    store = create_store(get_settings(), in_memory=args.memory)
    try:
        status, body = await run(args, store)
    finally:
        await store.close()
    print(json.dumps(body))
    return status


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    problems = check_config_health()
    if problems:
        print(json.dumps({"healthy": False, "problems": problems}))
        return 1
    configure_logging()
    logger.debug("Running command %s", args.command)
    return asyncio.run(_main(args))


if __name__ == "__main__":
    sys.exit(main())
