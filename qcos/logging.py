# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Logging setup with credential redaction.

Library modules log through ``logging.getLogger(__name__)`` and never
configure handlers themselves.  Applications embedding the client call
``configure_logging`` once at startup.

Secret keys loaded through ``qcos.config`` are registered with
``SecretFilter`` so that a key which ends up in a log message (for
example inside an exception string) is printed as ``[REDACTED]``.

Usage:
    from qcos.logging import configure_logging
    configure_logging(level=logging.DEBUG)
"""

import logging
import re
from typing import ClassVar


_REDACTED = "[REDACTED]"


class SecretFilter(logging.Filter):
    """Logging filter that redacts registered secrets from log output.

    The registry is shared by all instances, so a secret registered by
    the config layer is redacted by every handler carrying this filter.
    """

    _secrets: ClassVar[set[str]] = set()
    _pattern: ClassVar[re.Pattern[str] | None] = None

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact registered secrets from the record's message and args.

        Args:
            record: The log record to filter.

        Returns:
            Always True; records are modified, never dropped.
        """
        pattern = self._pattern
        if pattern is None:
            return True
        record.msg = pattern.sub(_REDACTED, str(record.msg))
        if isinstance(record.args, tuple):
            record.args = tuple(
                pattern.sub(_REDACTED, arg) if isinstance(arg, str) else arg
                for arg in record.args
            )
        elif isinstance(record.args, dict):
            record.args = {
                key: pattern.sub(_REDACTED, value)
                if isinstance(value, str)
                else value
                for key, value in record.args.items()
            }
        return True

    @classmethod
    def register_secret(cls, secret: str) -> None:
        """Register a secret to be redacted. Empty strings are ignored."""
        if secret and secret not in cls._secrets:
            cls._secrets.add(secret)
            cls._rebuild_pattern()

    @classmethod
    def clear_secrets(cls) -> None:
        """Forget all registered secrets. Primarily for testing."""
        cls._secrets.clear()
        cls._pattern = None

    @classmethod
    def _rebuild_pattern(cls) -> None:
        if not cls._secrets:
            cls._pattern = None
            return
        # Longest first so a secret containing another is fully replaced.
        escaped = [
            re.escape(s) for s in sorted(cls._secrets, key=len, reverse=True)
        ]
        cls._pattern = re.compile("|".join(escaped))


def configure_logging(
    level: int = logging.INFO,
    format_string: str | None = None,
    add_secret_filter: bool = True,
) -> None:
    """Configure the root logger.

    Replaces any existing root handlers with a single stream handler.

    Args:
        level: Root logger level.
        format_string: Custom format string. If None, uses default format.
        add_secret_filter: Whether to attach ``SecretFilter`` to the handler.
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(format_string))
    if add_secret_filter:
        handler.addFilter(SecretFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for existing_handler in root_logger.handlers[:]:
        root_logger.removeHandler(existing_handler)
    root_logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` (typically ``__name__``)."""
    return logging.getLogger(name)
