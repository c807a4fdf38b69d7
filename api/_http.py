"""Helpers shared by the gateway and backend request handlers"""

from typing import Optional

from .errors import BadRequest


def header_bytes(text: str) -> bytes:
    """
    Encode a header name or value for the wire.

    http.server decodes inbound header bytes as latin-1, so encoding the
    same way round-trips them unchanged.
    """
    try:
        return text.encode('latin-1')
    except UnicodeEncodeError:
        return text.encode('utf-8')


def read_content_length(value: Optional[str]) -> int:
    """
    Parse a Content-Length header; absent or blank means no body.

    Raises:
        BadRequest: the header is not a non-negative integer
    """
    if value is None or not value.strip():
        return 0
    try:
        length = int(value)
    except ValueError:
        raise BadRequest(f'invalid Content-Length: {value!r}')
    if length < 0:
        raise BadRequest(f'invalid Content-Length: {value!r}')
    return length
