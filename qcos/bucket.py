# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Bucket value type and XML API addresses."""

from __future__ import annotations

import re
import urllib.parse
from dataclasses import dataclass


# {name}-{appid}.cos.{region}.myqcloud.com; name may contain hyphens.
_BUCKET_HOST_RE = re.compile(
    r"^(?P<name>[a-z0-9][a-z0-9-]*)-(?P<app_id>[0-9]+)"
    r"\.cos\.(?P<region>[a-z0-9-]+)\.myqcloud\.com$"
)


@dataclass(frozen=True)
class Bucket:
    """A storage bucket.

    Attributes:
        name: Bucket name without the app id suffix.
        app_id: Numeric account app id.
        region: Region code, e.g. ``ap-shanghai``.
    """

    name: str
    app_id: str
    region: str

    @property
    def address(self) -> str:
        """XML API address of the bucket, without a trailing ``/``."""
        return (
            f"https://{self.name}-{self.app_id}.cos.{self.region}.myqcloud.com"
        )

    def url(self) -> str:
        """Bucket URL; the same value as :attr:`address`."""
        return self.address

    def object_url(self, key: str) -> str:
        """Absolute URL of the object ``key`` within this bucket."""
        return f"{self.address}/{urllib.parse.quote(key.lstrip('/'))}"

    def __str__(self) -> str:
        return f"{self.name}-{self.app_id}@{self.region}"


def split_bucket_name(full_name: str) -> tuple[str, str]:
    """Split ``"{name}-{appid}"`` into ``(name, app_id)``.

    Raises:
        ValueError: If there is no ``-`` separator.
    """
    name, sep, app_id = full_name.rpartition("-")
    if not sep or not name or not app_id:
        raise ValueError(f"Not a qualified bucket name: {full_name!r}")
    return name, app_id


def parse_bucket_url(url: str) -> Bucket:
    """Parse a bucket address back into a Bucket.

    Args:
        url: Address such as
            ``https://test-123-1203324242.cos.ap-shanghai.myqcloud.com``.
            A path, if present, is ignored.

    Returns:
        The addressed bucket.

    Raises:
        ValueError: If the host is not a COS bucket host.
    """
    host = urllib.parse.urlsplit(url).hostname or ""
    m = _BUCKET_HOST_RE.match(host)
    if not m:
        raise ValueError(f"Not a COS bucket address: {url!r}")
    return Bucket(
        name=m.group("name"),
        app_id=m.group("app_id"),
        region=m.group("region"),
    )
