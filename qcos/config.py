# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Client configuration.

Configuration comes either from a YAML file (``~/.config/qcos/qcos.yaml``
by default) or straight from environment variables.  In YAML, any value
may be written as ``!env VAR_NAME`` to read it from the environment at
load time, which keeps keys out of the file::

    app_id: "1250000000"
    secret_id: !env QCLOUD_SECRET_ID
    secret_key: !env QCLOUD_SECRET_KEY
    timeout: 15

A ``.env`` file is loaded before either source is read.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar, overload

import yaml
from platformdirs import user_config_path

from qcos.dotenv_loader import load_dotenv_once
from qcos.logging import SecretFilter
from qcos.signing import SecretPair


logger = logging.getLogger(__name__)

#: Application name for XDG path resolution.
_APP_NAME = "qcos"

#: Endpoint serving the account-wide bucket listing.
DEFAULT_SERVICE_ENDPOINT = "https://service.cos.myqcloud.com/"

DEFAULT_TIMEOUT_SECONDS = 30

#: Environment variables read by ``ClientConfig.from_env``.
ENV_APP_ID = "QCLOUD_APP_ID"
ENV_SECRET_ID = "QCLOUD_SECRET_ID"
ENV_SECRET_KEY = "QCLOUD_SECRET_KEY"


def get_config_path() -> Path:
    """Return the default config file path.

    Uses XDG: ``$XDG_CONFIG_HOME/qcos/qcos.yaml`` (typically
    ``~/.config/qcos/qcos.yaml``).
    """
    return user_config_path(_APP_NAME) / "qcos.yaml"


def get_dotenv_path() -> Path:
    """Return the ``.env`` path inside the XDG config directory."""
    return user_config_path(_APP_NAME) / ".env"


class ConfigError(Exception):
    """Base exception for configuration errors."""


# ---------------------------------------------------------------------------
# YAML ``!env`` tag
# ---------------------------------------------------------------------------


class _EnvVar:
    """Placeholder for an unresolved ``!env VAR_NAME`` tag."""

    def __init__(self, var_name: str) -> None:
        self.var_name = var_name


def _env_constructor(loader: yaml.SafeLoader, node: yaml.Node) -> _EnvVar:
    value = loader.construct_scalar(node)
    return _EnvVar(str(value))


def _make_loader() -> type[yaml.SafeLoader]:
    """Create a YAML loader that understands ``!env``."""

    class EnvLoader(yaml.SafeLoader):
        pass

    EnvLoader.add_constructor("!env", _env_constructor)
    return EnvLoader


# ---------------------------------------------------------------------------
# Value resolution
# ---------------------------------------------------------------------------


def _raw_resolve(value: object) -> str | None:
    """Resolve an ``_EnvVar`` to its string value, or stringify literals.

    Returns None if the value is None or the env var is not set.
    """
    if isinstance(value, _EnvVar):
        return os.environ.get(value.var_name)
    if value is None:
        return None
    return str(value)


_MISSING = object()

_T = TypeVar("_T")


@overload
def _resolve(value: object, coerce: type[_T], *, default: _T) -> _T: ...


@overload
def _resolve(value: object, coerce: type[_T], *, required: str) -> _T: ...


def _resolve(
    value: object,
    coerce: type[Any],
    *,
    default: object = _MISSING,
    required: str = "",
) -> Any:
    """Resolve a YAML value, handling ``!env`` tags and type coercion.

    Args:
        value: Raw value from YAML (may be ``_EnvVar``, None, or a
            literal already parsed by PyYAML).
        coerce: Target type (``str`` or ``int``).
        default: Default when value is absent.
        required: Human-readable field name.  When set, raises
            ``ConfigError`` if the value is absent.

    Returns:
        The resolved, coerced value.

    Raises:
        ConfigError: If a required value is absent or cannot be coerced.
    """
    if not isinstance(value, _EnvVar) and isinstance(value, coerce):
        return value

    resolved = _raw_resolve(value)
    if resolved is None:
        if required:
            if isinstance(value, _EnvVar):
                raise ConfigError(
                    f"Required config '{required}': environment variable "
                    f"'{value.var_name}' is not set"
                )
            raise ConfigError(f"Required config '{required}' is missing")
        return default

    try:
        return coerce(resolved)
    except ValueError as e:
        name = required or "value"
        raise ConfigError(
            f"Config '{name}' must be {coerce.__name__}: {resolved!r}"
        ) from e


# ---------------------------------------------------------------------------
# Client configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ClientConfig:
    """Account credentials and transport settings.

    Attributes:
        app_id: Account app id, appended to bucket names in addresses.
        secret_id: Access id sent with every signature.
        secret_key: Secret key used to derive signing keys.
        timeout_seconds: Per-request HTTP timeout.
        service_endpoint: Endpoint for the bucket listing.
    """

    app_id: str
    secret_id: str
    secret_key: str = field(repr=False)
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    service_endpoint: str = DEFAULT_SERVICE_ENDPOINT

    def __post_init__(self) -> None:
        """Validate configuration and register the key for redaction.

        Raises:
            ConfigError: If credentials are empty.
            ValueError: If the timeout is not positive.
        """
        if not self.secret_id:
            raise ConfigError("secret_id must not be empty")
        if not self.secret_key:
            raise ConfigError("secret_key must not be empty")
        if self.timeout_seconds < 1:
            raise ValueError(
                f"Timeout must be >= 1s: {self.timeout_seconds}"
            )
        SecretFilter.register_secret(self.secret_key)

    @property
    def credentials(self) -> SecretPair:
        """The credential pair handed to the signer."""
        return SecretPair(access_id=self.secret_id, secret_key=self.secret_key)

    @classmethod
    def from_yaml(cls, config_path: Path | None = None) -> "ClientConfig":
        """Load configuration from a YAML file.

        Args:
            config_path: Path to YAML config file.  Defaults to
                ``~/.config/qcos/qcos.yaml`` (XDG).

        Returns:
            ClientConfig instance.

        Raises:
            ConfigError: If the file is missing or required values are absent.
        """
        load_dotenv_once()

        if config_path is None:
            config_path = get_config_path()

        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            raw = yaml.load(f, Loader=_make_loader())

        if not isinstance(raw, dict):
            raise ConfigError(
                f"Config file must be a YAML mapping: {config_path}"
            )

        config = cls._from_raw(raw)
        logger.info("Loaded COS config from %s", config_path)
        return config

    @classmethod
    def _from_raw(cls, raw: dict) -> "ClientConfig":
        """Build config from parsed (but unresolved) YAML dict."""
        return cls(
            app_id=_resolve(raw.get("app_id"), str, default=""),
            secret_id=_resolve(raw.get("secret_id"), str, required="secret_id"),
            secret_key=_resolve(
                raw.get("secret_key"), str, required="secret_key"
            ),
            timeout_seconds=_resolve(
                raw.get("timeout"), int, default=DEFAULT_TIMEOUT_SECONDS
            ),
            service_endpoint=_resolve(
                raw.get("service_endpoint"),
                str,
                default=DEFAULT_SERVICE_ENDPOINT,
            ),
        )

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Load configuration from ``QCLOUD_*`` environment variables.

        Lowercase variable names (``qcloud_secret_id``) are accepted as
        a fallback.

        Raises:
            ConfigError: If the id or key variable is unset or empty.
        """
        load_dotenv_once()

        def _get(name: str) -> str:
            return os.environ.get(name) or os.environ.get(name.lower()) or ""

        secret_id = _get(ENV_SECRET_ID)
        secret_key = _get(ENV_SECRET_KEY)
        if not secret_id or not secret_key:
            raise ConfigError(
                f"Environment variables {ENV_SECRET_ID} and "
                f"{ENV_SECRET_KEY} must be set"
            )
        return cls(
            app_id=_get(ENV_APP_ID),
            secret_id=secret_id,
            secret_key=secret_key,
        )
