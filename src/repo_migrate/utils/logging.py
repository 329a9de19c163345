"""Loguru sinks for migration runs.

Every record carries a ``component`` extra, set by each module with
``logger.bind(component=...)``. Private key blocks are masked before any
sink sees a message, so a key pasted into an error never reaches the
console or the log file.
"""

import re
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

DEFAULT_COMPONENT = 'repo-migrate'
REDACTED_KEY = '[redacted private key]'

CONSOLE_FORMAT = (
    '<green>{time:YYYY-MM-DD HH:mm:ss}</green> | '
    '<level>{level: <8}</level> | '
    '<cyan>{extra[component]}</cyan> | '
    '<level>{message}</level>'
)
FILE_FORMAT = (
    '{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[component]} | '
    '{name}:{function}:{line} | {message}'
)

_PRIVATE_KEY_BLOCK = re.compile(
    r'-----BEGIN ([A-Z0-9 ]*)PRIVATE KEY-----.*?-----END \1PRIVATE KEY-----',
    re.DOTALL,
)


def redact_private_keys(text: str) -> str:
    """Replace every PEM/OpenSSH private key block in ``text``."""
    return _PRIVATE_KEY_BLOCK.sub(REDACTED_KEY, text)


def _redact_record(record) -> None:
    if 'PRIVATE KEY-----' in record['message']:
        record['message'] = redact_private_keys(record['message'])


def setup_logging(
    level: str = 'INFO',
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
) -> None:
    """Route records to stderr and, optionally, a rotating log file.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path; parent directories are created
        log_format: Console format, ``CONSOLE_FORMAT`` when omitted. The
            file sink always uses ``FILE_FORMAT``.
    """
    logger.remove()
    logger.configure(
        extra={'component': DEFAULT_COMPONENT},
        patcher=_redact_record,
    )

    # diagnose would dump local variables, key material included
    logger.add(
        sys.stderr,
        format=log_format or CONSOLE_FORMAT,
        level=level,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=FILE_FORMAT,
            level=level,
            rotation='10 MB',
            retention='30 days',
            compression='gz',
            backtrace=True,
            diagnose=False,
        )

    logger.bind(component='logging').debug(
        f'Logging at {level}' + (f', writing to {log_file}' if log_file else '')
    )
