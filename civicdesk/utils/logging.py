"""
Logging Configuration
Structured logging with loguru
Source: https://github.com/Delgan/loguru
"""

import sys
from pathlib import Path

from loguru import logger


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    json_logs: bool = False,
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path
        json_logs: Whether to output JSON format (useful for production)
    """
    logger.remove()

    if json_logs:
        logger.add(
            sys.stderr,
            format="{message}",
            level=level,
            serialize=True,
        )
    else:
        logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{extra[name]}</cyan> - <level>{message}</level>",
            level=level,
            colorize=True,
        )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_file,
            rotation="50 MB",
            retention="14 days",
            compression="zip",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[name]} - {message}",
            level=level,
            serialize=json_logs,
        )

    logger.configure(extra={"name": "civicdesk"})
    logger.info(f"Logging configured: level={level}, json_logs={json_logs}")


def get_logger(name: str = __name__):  # type: ignore[no-untyped-def]
    """
    Get a logger bound to a module name.

    Example:
        >>> from civicdesk.utils.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Login page served")
    """
    return logger.bind(name=name)


def redact(secret: str | None, keep: int = 4) -> str:
    """
    Shorten a credential-like value (state token, auth code) for log lines.

    Example:
        >>> redact("4/0AbCdEfGh")
        '4/0A...'
    """
    if not secret:
        return "<empty>"
    return f"{secret[:keep]}..."
