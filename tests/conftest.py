# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Shared pytest fixtures used across test modules."""

from collections.abc import Callable, Iterator

import httpx
import pytest

from qcos.client import Client
from qcos.config import ClientConfig
from qcos.dotenv_loader import reset_dotenv_state
from qcos.logging import SecretFilter
from qcos.signing import Signer


#: Fixed clock reading for signed requests in tests.
FIXED_NOW = 1700000000

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(autouse=True)
def _reset_global_state() -> Iterator[None]:
    """Clear redaction secrets and the dotenv flag around every test."""
    SecretFilter.clear_secrets()
    reset_dotenv_state()
    yield
    SecretFilter.clear_secrets()
    reset_dotenv_state()


@pytest.fixture
def client_config() -> ClientConfig:
    """Config with example credentials."""
    return ClientConfig(
        app_id="1250000000",
        secret_id="AKIDEXAMPLE",
        secret_key="example-secret-key",
    )


@pytest.fixture
def make_client(
    client_config: ClientConfig,
) -> Iterator[Callable[[Handler], Client]]:
    """Build clients whose transport is served by a handler function.

    The handler receives every outgoing ``httpx.Request`` and returns
    the response; requests are also recorded on ``client.sent``.
    """
    clients: list[Client] = []

    def _make(handler: Handler) -> Client:
        sent: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            return handler(request)

        http_client = httpx.Client(transport=httpx.MockTransport(_record))
        client = Client(
            client_config,
            http_client=http_client,
            signer=Signer(client_config.credentials, clock=lambda: FIXED_NOW),
        )
        client.sent = sent  # type: ignore[attr-defined]
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client._http.close()
