# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for qcos/config.py."""

from pathlib import Path
from unittest.mock import patch

import pytest

from qcos.config import (
    DEFAULT_SERVICE_ENDPOINT,
    DEFAULT_TIMEOUT_SECONDS,
    ClientConfig,
    ConfigError,
    get_config_path,
    get_dotenv_path,
)
from qcos.logging import SecretFilter
from qcos.signing import SecretPair


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "qcos.yaml"
    path.write_text(text)
    return path


class TestPaths:
    """Tests for XDG path helpers."""

    def test_config_path(self, tmp_path: Path) -> None:
        """Config file lives in the qcos XDG config directory."""
        with patch("qcos.config.user_config_path", return_value=tmp_path):
            assert get_config_path() == tmp_path / "qcos.yaml"

    def test_dotenv_path(self, tmp_path: Path) -> None:
        """.env sits next to the config file."""
        with patch("qcos.config.user_config_path", return_value=tmp_path):
            assert get_dotenv_path() == tmp_path / ".env"


class TestClientConfig:
    """Tests for ClientConfig validation."""

    def test_defaults(self) -> None:
        """Timeout and endpoint have defaults."""
        config = ClientConfig(app_id="1", secret_id="id", secret_key="key")
        assert config.timeout_seconds == DEFAULT_TIMEOUT_SECONDS
        assert config.service_endpoint == DEFAULT_SERVICE_ENDPOINT

    def test_credentials(self) -> None:
        """credentials maps secret_id to the access id."""
        config = ClientConfig(app_id="1", secret_id="id", secret_key="key")
        assert config.credentials == SecretPair(
            access_id="id", secret_key="key"
        )

    def test_empty_secret_id(self) -> None:
        """An empty secret id is rejected."""
        with pytest.raises(ConfigError, match="secret_id"):
            ClientConfig(app_id="1", secret_id="", secret_key="key")

    def test_empty_secret_key(self) -> None:
        """An empty secret key is rejected."""
        with pytest.raises(ConfigError, match="secret_key"):
            ClientConfig(app_id="1", secret_id="id", secret_key="")

    def test_invalid_timeout(self) -> None:
        """A non-positive timeout is rejected."""
        with pytest.raises(ValueError, match="Timeout"):
            ClientConfig(
                app_id="1", secret_id="id", secret_key="key", timeout_seconds=0
            )

    def test_secret_key_registered_for_redaction(self) -> None:
        """Loading a config registers its key with SecretFilter."""
        ClientConfig(app_id="1", secret_id="id", secret_key="hunter2-key")
        assert "hunter2-key" in SecretFilter._secrets

    def test_repr_hides_secret_key(self) -> None:
        """The secret key is not part of repr."""
        config = ClientConfig(
            app_id="1", secret_id="id", secret_key="hunter2-key"
        )
        assert "hunter2-key" not in repr(config)


class TestFromYaml:
    """Tests for ClientConfig.from_yaml."""

    def test_literal_values(self, tmp_path: Path) -> None:
        """Plain YAML values are used as-is."""
        path = _write(
            tmp_path,
            "app_id: 1250000000\n"
            "secret_id: AKIDEXAMPLE\n"
            "secret_key: example-key\n"
            "timeout: 15\n",
        )
        config = ClientConfig.from_yaml(path)
        assert config.app_id == "1250000000"
        assert config.secret_id == "AKIDEXAMPLE"
        assert config.secret_key == "example-key"
        assert config.timeout_seconds == 15
        assert config.service_endpoint == DEFAULT_SERVICE_ENDPOINT

    def test_env_tags(self, tmp_path: Path) -> None:
        """!env values are read from the environment."""
        path = _write(
            tmp_path,
            "app_id: !env TEST_QCOS_APP\n"
            "secret_id: !env TEST_QCOS_ID\n"
            "secret_key: !env TEST_QCOS_KEY\n"
            "timeout: !env TEST_QCOS_TIMEOUT\n",
        )
        env = {
            "TEST_QCOS_APP": "42",
            "TEST_QCOS_ID": "env-id",
            "TEST_QCOS_KEY": "env-key",
            "TEST_QCOS_TIMEOUT": "7",
        }
        with patch.dict("os.environ", env):
            config = ClientConfig.from_yaml(path)
        assert config.app_id == "42"
        assert config.secret_id == "env-id"
        assert config.secret_key == "env-key"
        assert config.timeout_seconds == 7

    def test_unset_env_var(self, tmp_path: Path) -> None:
        """A required !env variable that is unset names the variable."""
        path = _write(
            tmp_path,
            "secret_id: !env TEST_QCOS_UNSET_ID\nsecret_key: key\n",
        )
        with pytest.raises(ConfigError, match="TEST_QCOS_UNSET_ID"):
            ClientConfig.from_yaml(path)

    def test_missing_required_value(self, tmp_path: Path) -> None:
        """A missing secret_key is reported by name."""
        path = _write(tmp_path, "secret_id: id\n")
        with pytest.raises(ConfigError, match="secret_key"):
            ClientConfig.from_yaml(path)

    def test_bad_timeout(self, tmp_path: Path) -> None:
        """A non-integer timeout is a config error."""
        path = _write(
            tmp_path, "secret_id: id\nsecret_key: key\ntimeout: soon\n"
        )
        with pytest.raises(ConfigError, match="int"):
            ClientConfig.from_yaml(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises ConfigError."""
        with pytest.raises(ConfigError, match="not found"):
            ClientConfig.from_yaml(tmp_path / "absent.yaml")

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        """A YAML list is rejected."""
        path = _write(tmp_path, "- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            ClientConfig.from_yaml(path)

    def test_default_path(self, tmp_path: Path) -> None:
        """Without an argument the XDG path is used."""
        _write(tmp_path, "secret_id: id\nsecret_key: key\n")
        with patch("qcos.config.user_config_path", return_value=tmp_path):
            config = ClientConfig.from_yaml()
        assert config.secret_id == "id"

    def test_loads_dotenv(self, tmp_path: Path) -> None:
        """.env is loaded before values are resolved."""
        path = _write(tmp_path, "secret_id: id\nsecret_key: key\n")
        with patch("qcos.config.load_dotenv_once") as mock_load:
            ClientConfig.from_yaml(path)
        mock_load.assert_called_once_with()


class TestFromEnv:
    """Tests for ClientConfig.from_env."""

    def test_reads_variables(self) -> None:
        """QCLOUD_* variables populate the config."""
        env = {
            "QCLOUD_APP_ID": "1250000000",
            "QCLOUD_SECRET_ID": "AKIDEXAMPLE",
            "QCLOUD_SECRET_KEY": "example-key",
        }
        with (
            patch.dict("os.environ", env, clear=True),
            patch("qcos.config.load_dotenv_once"),
        ):
            config = ClientConfig.from_env()
        assert config.app_id == "1250000000"
        assert config.secret_id == "AKIDEXAMPLE"
        assert config.secret_key == "example-key"

    def test_lowercase_fallback(self) -> None:
        """Lowercase variable names are accepted."""
        env = {
            "qcloud_app_id": "1",
            "qcloud_secret_id": "id",
            "qcloud_secret_key": "key",
        }
        with (
            patch.dict("os.environ", env, clear=True),
            patch("qcos.config.load_dotenv_once"),
        ):
            config = ClientConfig.from_env()
        assert config.secret_id == "id"

    def test_missing_variables(self) -> None:
        """Missing credentials raise ConfigError."""
        with (
            patch.dict("os.environ", {}, clear=True),
            patch("qcos.config.load_dotenv_once"),
            pytest.raises(ConfigError, match="QCLOUD_SECRET_ID"),
        ):
            ClientConfig.from_env()
