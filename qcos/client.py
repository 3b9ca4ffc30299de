# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""COS XML API client.

Every request is signed by ``qcos.signing.Signer`` just before it is sent:
the signature covers the method, the decoded URL path, the URL's query
parameters, the caller's headers and ``Host``.  Headers httpx adds on
its own (``User-Agent``, ``Accept-Encoding``, ...) are not signed, which
the service accepts because ``q-header-list`` names the signed set.

API reference: https://cloud.tencent.com/document/product/436/7751
"""

from __future__ import annotations

import logging
import urllib.parse
from collections.abc import Mapping
from types import TracebackType

import httpx

from qcos.bucket import Bucket, split_bucket_name
from qcos.config import ClientConfig
from qcos.errors import ResponseParseError, parse_xml, request_failure
from qcos.signing import SignableRequest, Signer


logger = logging.getLogger(__name__)

_OK = frozenset({200})
_OK_OR_NO_CONTENT = frozenset({200, 204})


class Client:
    """Performs bucket and object operations for one account.

    Usage:
        with Client(ClientConfig.from_env()) as client:
            bucket = client.put_bucket("photos", "ap-shanghai")
            client.put_object(bucket.object_url("a.txt"), b"hello")
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        http_client: httpx.Client | None = None,
        signer: Signer | None = None,
    ) -> None:
        """Create a client.

        Args:
            config: Credentials and transport settings.
            http_client: Optional preconfigured httpx client.  When
                omitted, one is created with ``config.timeout_seconds``
                and closed by ``close()``.
            signer: Optional signer; defaults to one built from
                ``config.credentials``.
        """
        self._config = config
        self._signer = signer or Signer(config.credentials)
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.Client(
            timeout=config.timeout_seconds
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    def close(self) -> None:
        """Close the underlying httpx client if this object created it."""
        if self._owns_http_client:
            self._http.close()

    def __enter__(self) -> Client:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    # -----------------------------------------------------------------------
    # Transport
    # -----------------------------------------------------------------------

    def _send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        content: bytes | str | None = None,
    ) -> httpx.Response:
        """Sign and send a request.

        Args:
            method: HTTP method.
            url: Absolute request URL.
            headers: Extra request headers; all of them are signed.
                A caller ``Host`` or ``Authorization`` is overridden.
            content: Request body.

        Returns:
            The response, fully read.

        Raises:
            httpx.HTTPError: On transport failures.
        """
        parts = urllib.parse.urlsplit(url)
        path = urllib.parse.unquote(parts.path) or "/"
        if not parts.path:
            url = urllib.parse.urlunsplit(parts._replace(path="/"))

        # Names are case-insensitive; caller Host or Authorization is replaced.
        request_headers = httpx.Headers(headers or {})
        request_headers.pop("Authorization", None)
        request_headers["Host"] = parts.netloc
        query_params = urllib.parse.parse_qs(
            parts.query, keep_blank_values=True
        )

        request_headers["Authorization"] = self._signer.sign(
            SignableRequest(
                method=method,
                path=path,
                query_params=query_params,
                headers=dict(request_headers.items()),
            )
        )

        logger.debug("%s %s", method, url)
        response = self._http.request(
            method, url, headers=request_headers, content=content
        )
        logger.debug("%s %s -> %d", method, url, response.status_code)
        return response

    def _expect(
        self,
        method: str,
        response: httpx.Response,
        statuses: frozenset[int],
    ) -> None:
        """Raise RequestFailure unless the status is one of ``statuses``."""
        if response.status_code in statuses:
            return
        failure = request_failure(method, response)
        logger.warning(
            "COS request failed: %s (%s)", failure, failure.message
        )
        raise failure

    def _bucket_root(self, name: str, region: str) -> tuple[Bucket, str]:
        bucket = Bucket(name=name, app_id=self._config.app_id, region=region)
        return bucket, f"{bucket.address}/"

    # -----------------------------------------------------------------------
    # Buckets
    # -----------------------------------------------------------------------

    def list_buckets(self) -> list[Bucket]:
        """List all buckets of the account.

        Returns:
            Buckets in the order the service lists them.

        Raises:
            RequestFailure: If the service rejects the request.
            ResponseParseError: If the listing is not valid XML.
        """
        response = self._send("GET", self._config.service_endpoint)
        self._expect("GET", response, _OK)

        root = parse_xml(response.content)
        buckets: list[Bucket] = []
        for elem in root.iterfind(".//Buckets/Bucket"):
            full_name = (elem.findtext("Name") or "").strip()
            try:
                name, app_id = split_bucket_name(full_name)
            except ValueError as e:
                raise ResponseParseError(str(e)) from e
            buckets.append(
                Bucket(
                    name=name,
                    app_id=app_id,
                    region=(elem.findtext("Location") or "").strip(),
                )
            )
        return buckets

    def put_bucket(
        self,
        name: str,
        region: str,
        headers: Mapping[str, str] | None = None,
    ) -> Bucket:
        """Create a bucket.

        Args:
            name: Bucket name without the app id suffix.
            region: Region code.
            headers: Extra headers, e.g. ``x-cos-acl`` for access control.

        Returns:
            The created bucket.

        Raises:
            RequestFailure: If the service rejects the request.
        """
        bucket, url = self._bucket_root(name, region)
        response = self._send("PUT", url, headers)
        self._expect("PUT", response, _OK)
        logger.info("Created bucket %s", bucket)
        return bucket

    def delete_bucket(self, name: str, region: str) -> None:
        """Delete an (empty) bucket.

        Raises:
            RequestFailure: If the service rejects the request.
        """
        bucket, url = self._bucket_root(name, region)
        response = self._send("DELETE", url)
        self._expect("DELETE", response, _OK_OR_NO_CONTENT)
        logger.info("Deleted bucket %s", bucket)

    # -----------------------------------------------------------------------
    # Objects
    # -----------------------------------------------------------------------

    def put_object(
        self,
        url: str,
        body: bytes | str,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        """Upload an object.

        Args:
            url: Absolute object URL.
            body: Object content.
            headers: Extra headers, e.g. ``Content-Type`` or ``x-cos-acl``.

        Raises:
            RequestFailure: If the service rejects the request.
        """
        response = self._send("PUT", url, headers, content=body)
        self._expect("PUT", response, _OK)

    def get_object(self, url: str) -> tuple[bytes, httpx.Headers]:
        """Download an object.

        Returns:
            Tuple of (content, response headers).

        Raises:
            RequestFailure: If the service rejects the request.
        """
        response = self._send("GET", url)
        self._expect("GET", response, _OK)
        return response.content, response.headers

    def delete_object(self, url: str) -> None:
        """Delete an object.

        Deleting a key that does not exist also succeeds (204).

        Raises:
            RequestFailure: If the service rejects the request.
        """
        response = self._send("DELETE", url)
        self._expect("DELETE", response, _OK_OR_NO_CONTENT)
