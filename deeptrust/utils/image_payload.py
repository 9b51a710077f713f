"""Helpers for inline (base64 / data URL) image payloads."""
import base64
import binascii
import re

from deeptrust.core.exceptions import InvalidImageError
from deeptrust.dtos.analysis_dto import ImagePayload

_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[\w-]+=[\w.-]+)*;base64,", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")

OCTET_STREAM = "application/octet-stream"

# (offset, magic bytes, mime type)
_SIGNATURES: list[tuple[int, bytes, str]] = [
    (0, b"\x89PNG\r\n\x1a\n", "image/png"),
    (0, b"\xff\xd8\xff", "image/jpeg"),
    (0, b"GIF87a", "image/gif"),
    (0, b"GIF89a", "image/gif"),
    (8, b"WEBP", "image/webp"),
    (0, b"BM", "image/bmp"),
]


def strip_data_url(value: str) -> tuple[str, str | None]:
    """Split an optional ``data:<mime>;base64,`` prefix off a base64 string.

    Returns the bare base64 text and the declared MIME type, if any.
    """
    value = value.strip()
    match = _DATA_URL.match(value)
    if not match:
        return value, None
    return value[match.end():], match.group("mime")


def decode_base64_image(value: str) -> ImagePayload:
    """Decode a bare base64 string or a data URL into image bytes."""
    encoded, declared_mime = strip_data_url(value)
    encoded = _WHITESPACE.sub("", encoded)
    # Browsers sometimes drop the trailing padding
    encoded += "=" * (-len(encoded) % 4)

    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageError("imageBase64 is not valid base64 data") from e

    if not data:
        raise InvalidImageError("Image is empty")

    mime_type = sniff_mime_type(data)
    if mime_type == OCTET_STREAM and declared_mime:
        mime_type = declared_mime.lower()

    return ImagePayload(data=data, mime_type=mime_type)


def sniff_mime_type(data: bytes) -> str:
    """Guess the image MIME type from its leading magic bytes."""
    for offset, magic, mime_type in _SIGNATURES:
        if data[offset:offset + len(magic)] == magic:
            if mime_type == "image/webp" and not data.startswith(b"RIFF"):
                continue
            return mime_type
    return OCTET_STREAM


def to_base64(payload: ImagePayload) -> str:
    return base64.b64encode(payload.data).decode("ascii")


def to_data_url(payload: ImagePayload) -> str:
    return f"data:{payload.mime_type};base64,{to_base64(payload)}"
