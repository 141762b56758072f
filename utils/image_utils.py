"""
Image encoding utilities.
"""

import io

from PIL import Image

MIME_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
}


def mime_type_for(image_format: str) -> str:
    """Map a short format tag (png, jpeg) to its MIME type."""
    try:
        return MIME_TYPES[image_format.lower()]
    except KeyError:
        raise ValueError(f"Unsupported image format: {image_format}") from None


def encode_image(image: Image.Image, image_format: str = "png") -> bytes:
    """
    Encode a PIL Image to bytes in the given format.

    JPEG has no alpha channel, so RGBA/P images are flattened to RGB first.
    """
    fmt = image_format.lower()
    mime_type_for(fmt)
    if fmt in ("jpeg", "jpg"):
        fmt = "jpeg"
        if image.mode not in ("RGB", "L"):
            image = image.convert("RGB")

    buffer = io.BytesIO()
    image.save(buffer, format=fmt.upper())
    return buffer.getvalue()


def decode_image(data: bytes) -> Image.Image:
    """Open encoded image bytes as a PIL Image."""
    image = Image.open(io.BytesIO(data))
    image.load()
    return image
