"""
Inline image encoding helpers.

Image elements carry their pixels as ``data:`` URIs so that a page is a
self-contained record with no file references.
"""

import base64
import io
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from core.errors import InvalidImage

_DATA_URI_PREFIX = "data:"


def image_to_data_uri(image: Image.Image, fmt: str = "PNG") -> str:
    """Encode a PIL image as a base64 data URI."""
    buf = io.BytesIO()
    image.save(buf, format=fmt)
    mime = Image.MIME.get(fmt.upper(), "image/png")
    payload = base64.b64encode(buf.getvalue()).decode("ascii")
    return f"data:{mime};base64,{payload}"


def blob_to_data_uri(blob: bytes) -> Tuple[str, Tuple[int, int]]:
    """
    Validate an image blob with Pillow and wrap it as a data URI.

    Returns:
        ``(data_uri, (width, height))``

    Raises:
        InvalidImage: If Pillow cannot identify or decode the blob.
    """
    if not blob:
        raise InvalidImage("Empty image blob")
    try:
        with Image.open(io.BytesIO(blob)) as img:
            img.load()
            fmt = img.format or "PNG"
            size = img.size
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImage(f"Could not decode image: {e}") from e

    mime = Image.MIME.get(fmt.upper(), "image/png")
    payload = base64.b64encode(blob).decode("ascii")
    return f"data:{mime};base64,{payload}", size


def data_uri_to_image(uri: str) -> Image.Image:
    """
    Decode a base64 data URI into a fully loaded PIL image.

    Raises:
        InvalidImage: If the URI is malformed or the payload is not an image.
    """
    if not uri or not uri.startswith(_DATA_URI_PREFIX) or "," not in uri:
        raise InvalidImage("Not an inline image data URI")

    header, payload = uri.split(",", 1)
    if not header.endswith(";base64"):
        raise InvalidImage("Only base64 data URIs are supported")

    try:
        raw = base64.b64decode(payload)
        img = Image.open(io.BytesIO(raw))
        img.load()
    except (ValueError, UnidentifiedImageError, OSError) as e:
        raise InvalidImage(f"Could not decode inline image: {e}") from e
    return img


def image_to_png_bytes(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()
