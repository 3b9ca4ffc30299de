# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Exceptions raised by the COS client.

Failed requests carry the fields of the XML ``<Error>`` document the
service returns, see https://cloud.tencent.com/document/product/436/7730.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

import httpx


class CosError(Exception):
    """Base exception for COS client errors."""


class ResponseParseError(CosError):
    """A response body was not the XML document the operation expects."""


class RequestFailure(CosError):
    """The service answered with a non-success status.

    Attributes:
        http_method: Method of the failed request.
        http_status_code: HTTP status returned by the service.
        error_code: ``<Code>``, e.g. ``SignatureDoesNotMatch``.
        message: ``<Message>``, human-readable description.
        resource_url: ``<Resource>``, the resource the request addressed.
        request_id: ``<RequestId>``.
        trace_id: ``<TraceId>``.
    """

    def __init__(
        self,
        http_method: str,
        http_status_code: int,
        *,
        error_code: str = "",
        message: str = "",
        resource_url: str = "",
        request_id: str = "",
        trace_id: str = "",
    ) -> None:
        self.http_method = http_method
        self.http_status_code = http_status_code
        self.error_code = error_code
        self.message = message
        self.resource_url = resource_url
        self.request_id = request_id
        self.trace_id = trace_id
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            f"{self.http_method} {self.resource_url} - "
            f"{self.http_status_code}[{self.error_code}]"
        )


def parse_xml(content: bytes) -> ET.Element:
    """Parse a response body into its root element.

    Raises:
        ResponseParseError: If the body is not well-formed XML.
    """
    try:
        return ET.fromstring(content)
    except ET.ParseError as e:
        raise ResponseParseError(f"Invalid XML response: {e}") from e


def _child_text(element: ET.Element, tag: str) -> str:
    return (element.findtext(tag) or "").strip()


def request_failure(method: str, response: httpx.Response) -> RequestFailure:
    """Build a RequestFailure from an error response.

    Args:
        method: Method of the failed request.
        response: The service response (already read).

    Returns:
        RequestFailure populated from the ``<Error>`` document.

    Raises:
        ResponseParseError: If the body is not an ``<Error>`` document.
    """
    root = parse_xml(response.content)
    if root.tag != "Error":
        error = root.find("Error")
        if error is None:
            raise ResponseParseError(
                f"Expected <Error> document, got <{root.tag}> "
                f"(HTTP {response.status_code})"
            )
        root = error

    return RequestFailure(
        method,
        response.status_code,
        error_code=_child_text(root, "Code"),
        message=_child_text(root, "Message"),
        resource_url=_child_text(root, "Resource"),
        request_id=_child_text(root, "RequestId"),
        trace_id=_child_text(root, "TraceId"),
    )
