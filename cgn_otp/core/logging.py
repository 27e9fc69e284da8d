import logging
from pathlib import Path
import sys

from .config import BASE_DIR, get_settings


def configure_logging() -> None:
    settings = get_settings()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.LOG_FILE_PATH:
        log_path = Path(settings.LOG_FILE_PATH)
        if not log_path.is_absolute():
            log_path = BASE_DIR / log_path
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=handlers,
    )


def obfuscate(message: str, secret: str | None = None) -> str:
    if not secret:
        return message
    return message.replace(secret, "<secret>")


def log_with_privacy(
    logger: logging.Logger,
    prefix: str,
    error: BaseException | str,
    secret: str | None = None,
) -> str:
    """Log ``error`` at ERROR level with ``secret`` masked out.

    Returns the masked message so callers can reuse it in their responses.
    """

    message = obfuscate(str(error), secret)
    logger.error("%s|ERROR=%s", prefix, message)
    return message
