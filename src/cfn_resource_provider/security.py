"""
Security utilities for handling CloudFormation presigned response URLs.

The response URL is a presigned S3 URL: its query string carries the
signature that authorizes the single PUT of the response document. Anyone
holding the full URL can answer on behalf of the provider until it expires,
so it is validated before use and redacted before it reaches the logs.
"""

import re
import urllib.parse

from .exceptions import ValidationError

_ALLOWED_SCHEMES: frozenset[str] = frozenset({"https", "http"})
_INVALID_URL_CHARS = re.compile(r"[\x00-\x20\x7f]")
_REDACTED_QUERY = "<redacted>"


def validate_response_url(url: str) -> str:
    """
    Validate a presigned response URL and return it unchanged.

    Raises:
        ValidationError: If the URL is not an absolute http(s) URL with a host
            or contains whitespace or control characters.
    """
    if not isinstance(url, str):
        raise ValidationError(
            "Response URL is not a valid string",
            error_code="INVALID_RESPONSE_URL",
            context={"type": type(url).__name__},
        )

    if _INVALID_URL_CHARS.search(url):
        raise ValidationError(
            "Response URL contains whitespace or control characters",
            error_code="INVALID_RESPONSE_URL",
        )

    parts = urllib.parse.urlsplit(url)
    if parts.scheme.lower() not in _ALLOWED_SCHEMES or not parts.hostname:
        raise ValidationError(
            "Response URL must be an absolute http(s) URL",
            error_code="INVALID_RESPONSE_URL",
            context={"scheme": parts.scheme},
        )

    return url


def redact_response_url(url: str) -> str:
    """
    Strip the signature-bearing query string and any fragment from a response URL.

    >>> redact_response_url("https://bucket.s3.amazonaws.com/key?X-Amz-Signature=abc")
    'https://bucket.s3.amazonaws.com/key?<redacted>'
    """
    parts = urllib.parse.urlsplit(url)
    query = _REDACTED_QUERY if parts.query else ""
    return urllib.parse.urlunsplit((parts.scheme, parts.netloc, parts.path, query, ""))
