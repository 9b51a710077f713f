import base64

import pytest

from deeptrust.core.exceptions import InvalidImageError
from deeptrust.dtos.analysis_dto import ImagePayload
from deeptrust.utils.image_payload import (
    OCTET_STREAM,
    decode_base64_image,
    sniff_mime_type,
    strip_data_url,
    to_data_url,
)
from tests.conftest import JPEG_BYTES, PNG_BASE64, PNG_BYTES


def test_strip_data_url_returns_mime_and_payload():
    assert strip_data_url(f"data:image/png;base64,{PNG_BASE64}") == (PNG_BASE64, "image/png")
    assert strip_data_url(PNG_BASE64) == (PNG_BASE64, None)


def test_decode_plain_and_data_url_base64():
    assert decode_base64_image(PNG_BASE64).data == PNG_BYTES
    payload = decode_base64_image(f"data:image/png;base64,{PNG_BASE64}")
    assert payload.data == PNG_BYTES
    assert payload.mime_type == "image/png"


def test_decode_tolerates_whitespace_and_missing_padding():
    encoded = base64.b64encode(JPEG_BYTES[:20]).decode("ascii").rstrip("=")
    spaced = encoded[:8] + "\n" + encoded[8:]

    assert decode_base64_image(spaced).data == JPEG_BYTES[:20]


def test_declared_mime_used_when_bytes_are_unknown():
    encoded = base64.b64encode(b"not really an image").decode("ascii")
    payload = decode_base64_image(f"data:image/avif;base64,{encoded}")
    assert payload.mime_type == "image/avif"


@pytest.mark.parametrize("value", ["%%% not base64 %%%", "data:image/png;base64,", "   "])
def test_decode_rejects_invalid_input(value):
    with pytest.raises(InvalidImageError):
        decode_base64_image(value)


@pytest.mark.parametrize(
    ("data", "expected"),
    [
        (PNG_BYTES, "image/png"),
        (JPEG_BYTES, "image/jpeg"),
        (b"GIF89a" + b"\x00" * 8, "image/gif"),
        (b"RIFF\x00\x00\x00\x00WEBPVP8 ", "image/webp"),
        (b"BM" + b"\x00" * 8, "image/bmp"),
        (b"plain text", OCTET_STREAM),
    ],
)
def test_sniff_mime_type(data, expected):
    assert sniff_mime_type(data) == expected


def test_to_data_url():
    assert to_data_url(ImagePayload(data=PNG_BYTES, mime_type="image/png")) == (
        f"data:image/png;base64,{PNG_BASE64}"
    )
