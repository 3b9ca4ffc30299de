# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Client for the Tencent Cloud Object Storage (COS) XML API.

``qcos.signing`` implements the request signing scheme and has no I/O;
``qcos.client`` wraps it with an httpx transport and the bucket/object
operations.
"""

from qcos.bucket import Bucket, parse_bucket_url
from qcos.client import Client
from qcos.config import ClientConfig, ConfigError
from qcos.errors import CosError, RequestFailure, ResponseParseError
from qcos.signing import (
    SIGN_WINDOW_SECONDS,
    CanonicalForm,
    SecretPair,
    Signature,
    SignableRequest,
    Signer,
    TimeWindow,
    canonicalize,
)


__all__ = [
    # client
    "Client",
    # config
    "ClientConfig",
    "ConfigError",
    # bucket
    "Bucket",
    "parse_bucket_url",
    # errors
    "CosError",
    "RequestFailure",
    "ResponseParseError",
    # signing
    "SIGN_WINDOW_SECONDS",
    "CanonicalForm",
    "SecretPair",
    "Signature",
    "SignableRequest",
    "Signer",
    "TimeWindow",
    "canonicalize",
]
