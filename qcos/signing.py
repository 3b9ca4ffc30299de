# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""COS request signing (``q-sign-algorithm=sha1``).

Turns an outgoing request plus a secret id/key pair into the value of
the ``Authorization`` header expected by the COS XML API:

1. Canonicalize method, path, query parameters and headers.
2. Hash the canonical request with SHA1.
3. Derive a signing key scoped to a 30 second window:
   ``HMAC-SHA1(secret_key, "{start};{end}")``.
4. Sign ``"sha1\\n{sign_time}\\n{hash}\\n"`` with the hex signing key.
5. Assemble the ``q-*`` fields.

Everything here is a pure function of its inputs and the clock reading
taken by ``Signer.sign``; no I/O, no shared state.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
import urllib.parse
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field

from qcos.logging import SecretFilter


logger = logging.getLogger(__name__)

#: Algorithm name placed in ``q-sign-algorithm`` and the string to sign.
SIGN_ALGORITHM = "sha1"

#: Width of the validity window embedded in every signature.
SIGN_WINDOW_SECONDS = 30

#: A multimap value: one string, or a sequence whose first item is used.
MultiValue = str | Sequence[str]


# ---------------------------------------------------------------------------
# Hashing primitives
# ---------------------------------------------------------------------------


def _to_bytes(value: str | bytes) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return value


def sha1_hex(data: str | bytes) -> str:
    """Lowercase hex SHA1 digest of ``data``."""
    return hashlib.sha1(_to_bytes(data)).hexdigest()


def hmac_sha1_hex(key: str | bytes, data: str | bytes) -> str:
    """Lowercase hex HMAC-SHA1 of ``data`` keyed with ``key``.

    A ``str`` key is used as its UTF-8 bytes, which is how the hex
    signing key is fed into the second HMAC.
    """
    return hmac.new(_to_bytes(key), _to_bytes(data), hashlib.sha1).hexdigest()


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SecretPair:
    """Access id and secret key identifying the caller.

    Attributes:
        access_id: Public key id, sent as ``q-ak``.
        secret_key: Private key; only ever used as HMAC key material.
    """

    access_id: str
    secret_key: str = field(repr=False)

    def __post_init__(self) -> None:
        """Validate credentials and register the key for redaction.

        Raises:
            ValueError: If either value is empty.
        """
        if not self.access_id:
            raise ValueError("Access id must not be empty")
        if not self.secret_key:
            raise ValueError("Secret key must not be empty")
        SecretFilter.register_secret(self.secret_key)


@dataclass(frozen=True)
class SignableRequest:
    """The parts of an HTTP request covered by the signature.

    ``path`` must already be non-empty (``/`` for the root); it is used
    verbatim.  For repeated query or header keys only the first value
    takes part in signing.

    Attributes:
        method: HTTP method, any case.
        path: Decoded request path.
        query_params: Query parameter multimap.
        headers: Header multimap.
    """

    method: str
    path: str
    query_params: Mapping[str, MultiValue] = field(default_factory=dict)
    headers: Mapping[str, MultiValue] = field(default_factory=dict)


@dataclass(frozen=True)
class TimeWindow:
    """Validity window of a signature, in Unix seconds."""

    start: int
    end: int

    @classmethod
    def starting_at(cls, start: int) -> TimeWindow:
        """Build the fixed-width window beginning at ``start``."""
        return cls(start=start, end=start + SIGN_WINDOW_SECONDS)

    @property
    def sign_time(self) -> str:
        """``"{start};{end}"``, the form used in the string to sign."""
        return f"{self.start};{self.end}"


def first_value(key: str, value: MultiValue) -> str:
    """Return the primary value of a multimap entry.

    Args:
        key: Entry key, used in the error message.
        value: A string, or a sequence of strings.

    Returns:
        ``value`` itself for a string, otherwise its first item.

    Raises:
        ValueError: If the sequence is empty.
    """
    if isinstance(value, str):
        return value
    if not value:
        raise ValueError(f"No value for key {key!r}")
    return value[0]


# ---------------------------------------------------------------------------
# Canonicalization
# ---------------------------------------------------------------------------


class CanonicalForm:
    """Canonical request string plus the signed key lists."""

    __slots__ = ("param_list", "header_list", "canonical_request")

    def __init__(
        self, param_list: str, header_list: str, canonical_request: str
    ) -> None:
        self.param_list = param_list
        self.header_list = header_list
        self.canonical_request = canonical_request

    def __repr__(self) -> str:
        return (
            f"CanonicalForm(param_list={self.param_list!r}, "
            f"header_list={self.header_list!r}, "
            f"canonical_request={self.canonical_request!r})"
        )


def _escape_header_value(value: str) -> str:
    # Query-style escaping: everything except A-Z a-z 0-9 - _ . ~,
    # space as %20.
    return urllib.parse.quote(value, safe="")


def canonical_query_pairs(
    query_params: Mapping[str, MultiValue],
) -> list[tuple[str, str]]:
    """Lowercased, key-sorted ``(name, value)`` pairs for the query.

    Values are lowercased but not escaped.
    """
    pairs = [
        (key.lower(), first_value(key, value).lower())
        for key, value in query_params.items()
    ]
    pairs.sort(key=lambda pair: pair[0])
    return pairs


def canonical_header_pairs(
    headers: Mapping[str, MultiValue],
) -> list[tuple[str, str]]:
    """Lowercased, key-sorted ``(name, value)`` pairs for the headers.

    Values are percent-escaped and then lowercased.
    """
    pairs = [
        (key.lower(), _escape_header_value(first_value(key, value)).lower())
        for key, value in headers.items()
    ]
    pairs.sort(key=lambda pair: pair[0])
    return pairs


def _join_pairs(pairs: list[tuple[str, str]]) -> str:
    return "&".join(f"{key}={value}" for key, value in pairs)


def _join_keys(pairs: list[tuple[str, str]]) -> str:
    return ";".join(key for key, _ in pairs)


def canonicalize(request: SignableRequest) -> CanonicalForm:
    """Build the canonical form of a request.

    The canonical request is four newline-terminated lines: lowercased
    method, path, sorted ``key=value`` query pairs joined by ``&``, and
    sorted ``key=value`` header pairs joined by ``&``.  Empty query or
    header sets produce empty lines.

    Args:
        request: Request to canonicalize.

    Returns:
        CanonicalForm with the canonical request and signed key lists.

    Raises:
        ValueError: If a multimap entry has no values.
    """
    query_pairs = canonical_query_pairs(request.query_params)
    header_pairs = canonical_header_pairs(request.headers)

    canonical_request = "".join(
        f"{line}\n"
        for line in (
            request.method.lower(),
            request.path,
            _join_pairs(query_pairs),
            _join_pairs(header_pairs),
        )
    )
    return CanonicalForm(
        param_list=_join_keys(query_pairs),
        header_list=_join_keys(header_pairs),
        canonical_request=canonical_request,
    )


# ---------------------------------------------------------------------------
# Signature derivation
# ---------------------------------------------------------------------------


class Signature:
    """Result of signing one canonical request."""

    __slots__ = ("algorithm", "sign_time", "signature")

    def __init__(self, sign_time: str, signature: str) -> None:
        self.algorithm = SIGN_ALGORITHM
        self.sign_time = sign_time
        self.signature = signature

    def __repr__(self) -> str:
        return (
            f"Signature(algorithm={self.algorithm!r}, "
            f"sign_time={self.sign_time!r}, signature={self.signature!r})"
        )


def build_string_to_sign(sign_time: str, canonical_request: str) -> str:
    """Build ``"sha1\\n{sign_time}\\n{sha1(canonical_request)}\\n"``."""
    return (
        f"{SIGN_ALGORITHM}\n{sign_time}\n{sha1_hex(canonical_request)}\n"
    )


def derive_signing_key(secret_key: str, sign_time: str) -> str:
    """Derive the hex signing key for one time window."""
    return hmac_sha1_hex(secret_key, sign_time)


def derive_signature(
    canonical_request: str, secret_key: str, window: TimeWindow
) -> Signature:
    """Sign a canonical request for the given window.

    The signing key is used as its hex string, not the raw digest.

    Args:
        canonical_request: Output of ``canonicalize``.
        secret_key: Secret key of the caller.
        window: Validity window.

    Returns:
        Signature for the request.
    """
    sign_time = window.sign_time
    string_to_sign = build_string_to_sign(sign_time, canonical_request)
    signing_key = derive_signing_key(secret_key, sign_time)
    return Signature(
        sign_time=sign_time,
        signature=hmac_sha1_hex(signing_key, string_to_sign),
    )


# ---------------------------------------------------------------------------
# Authorization assembly
# ---------------------------------------------------------------------------


def build_authorization(
    access_id: str, signature: Signature, form: CanonicalForm
) -> str:
    """Assemble the ``Authorization`` header value.

    Fields are emitted in a fixed order; values are used as-is.
    """
    fields = (
        ("q-sign-algorithm", signature.algorithm),
        ("q-ak", access_id),
        ("q-sign-time", signature.sign_time),
        ("q-key-time", signature.sign_time),
        ("q-header-list", form.header_list),
        ("q-url-param-list", form.param_list),
        ("q-signature", signature.signature),
    )
    return "&".join(f"{key}={value}" for key, value in fields)


# ---------------------------------------------------------------------------
# Signer
# ---------------------------------------------------------------------------


class Signer:
    """Signs requests with one credential pair.

    Holds no mutable state; a single instance may be shared between
    threads.
    """

    def __init__(
        self,
        credentials: SecretPair,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._credentials = credentials
        self._clock = clock

    @property
    def access_id(self) -> str:
        return self._credentials.access_id

    def sign(self, request: SignableRequest) -> str:
        """Sign a request with a window starting now.

        Args:
            request: Request to sign.

        Returns:
            Authorization header value.
        """
        return self.sign_at(request, int(self._clock()))

    def sign_at(self, request: SignableRequest, start: int) -> str:
        """Sign a request with a window starting at ``start``.

        Args:
            request: Request to sign.
            start: Window start, Unix seconds.

        Returns:
            Authorization header value.
        """
        form = canonicalize(request)
        window = TimeWindow.starting_at(start)
        signature = derive_signature(
            form.canonical_request, self._credentials.secret_key, window
        )
        logger.debug(
            "Signed %s %s (window=%s, headers=%s, params=%s)",
            request.method.upper(),
            request.path,
            window.sign_time,
            form.header_list,
            form.param_list,
        )
        return build_authorization(
            self._credentials.access_id, signature, form
        )
