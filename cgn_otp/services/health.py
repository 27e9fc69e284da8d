from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from cgn_otp.core.config import get_settings

from .exceptions import TransportError

if TYPE_CHECKING:
    from cgn_otp.core.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

HEALTH_PROBE_KEY = "OTP_HEALTHCHECK"


def format_problem(source: str, message: str) -> str:
    # one problem per line
    return f"{source}|{message}".replace("\n", " ")


def check_config_health() -> list[str]:
    """Check the application's configuration is correct.

    Returns one problem per invalid setting, or an empty list.
    """

    try:
        get_settings()
    except ValidationError as exc:
        return [
            format_problem("Config", f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}")
            for error in exc.errors()
        ]
    return []


async def check_store_health(store: KeyValueStore) -> list[str]:
    """Check the key-value store answers a read-only command."""

    try:
        await store.exists(HEALTH_PROBE_KEY)
    except TransportError as exc:
        return [format_problem("Redis", str(exc))]
    return []


async def check_application_health(store: KeyValueStore) -> list[str]:
    """Run every health check; the store is only probed with a valid config."""

    problems = check_config_health()
    if not problems:
        problems = await check_store_health(store)
    for problem in problems:
        logger.warning("Health check failed: %s", problem)
    return problems
