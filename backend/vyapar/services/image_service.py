# FILE: backend/vyapar/services/image_service.py
# LOCALVYAPAR - IMAGE COMPRESSION
# 1. Downsizes so neither side exceeds 1200px (aspect ratio preserved).
# 2. Re-encodes JPEG from quality 0.8 down to 0.1 until the size estimate fits the budget.
# 3. At the 0.1 floor the image is returned even when still over budget.

import base64
import io
import logging
from PIL import Image, ImageOps, UnidentifiedImageError

from ..core.exceptions import ImageDecodeError

logger = logging.getLogger(__name__)

MAX_DIMENSION = 1200
DEFAULT_MAX_SIZE_KB = 500
PROOF_PHOTO_MAX_SIZE_KB = 200

# Quality is stepped in tenths to avoid float drift: 0.8, 0.7, ... 0.1
START_QUALITY_TENTHS = 8
FLOOR_QUALITY_TENTHS = 1

def estimated_size_kb(data: bytes) -> float:
    """Size estimate used by the budget check: base64 length * 0.75 / 1024."""
    return len(base64.b64encode(data)) * 0.75 / 1024

def decode_image(raw: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(raw))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Could not decode image: {e}") from e
    return image

def fit_within(image: Image.Image, max_dimension: int = MAX_DIMENSION) -> Image.Image:
    """Returns an RGB copy whose longer side is at most 'max_dimension'."""
    image = ImageOps.exif_transpose(image)
    if image.mode != "RGB":
        image = image.convert("RGB")
    else:
        image = image.copy()
    image.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
    return image

def encode_jpeg(image: Image.Image, quality_tenths: int) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality_tenths * 10)
    return buffer.getvalue()

def encode_within_budget(image: Image.Image, target_bytes: int) -> bytes:
    """
    Encodes 'image' as JPEG, lowering quality one tenth at a time while the
    estimated size exceeds 'target_bytes'. Stops at the quality floor.
    """
    target_kb = target_bytes / 1024
    quality = START_QUALITY_TENTHS
    data = encode_jpeg(image, quality)
    while estimated_size_kb(data) > target_kb and quality > FLOOR_QUALITY_TENTHS:
        quality -= 1
        data = encode_jpeg(image, quality)

    if estimated_size_kb(data) > target_kb:
        logger.info(f"Image still {estimated_size_kb(data):.0f}KB at quality floor; budget was {target_kb:.0f}KB.")
    return data

def to_data_url(data: bytes) -> str:
    return "data:image/jpeg;base64," + base64.b64encode(data).decode("utf-8")

def compress_image(raw: bytes, max_size_kb: int = DEFAULT_MAX_SIZE_KB) -> str:
    """Decodes, downsizes and re-encodes an upload into a storable JPEG data URL."""
    image = fit_within(decode_image(raw))
    return to_data_url(encode_within_budget(image, max_size_kb * 1024))
