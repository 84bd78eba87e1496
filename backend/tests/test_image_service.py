import base64
import io

import pytest
from PIL import Image

from conftest import image_bytes
from vyapar.core.exceptions import ImageDecodeError
from vyapar.services import image_service


def decode_data_url(data_url: str) -> bytes:
    prefix = "data:image/jpeg;base64,"
    assert data_url.startswith(prefix)
    return base64.b64decode(data_url[len(prefix):])


@pytest.mark.parametrize("max_size_kb", [500, 200])
def test_large_photo_is_resized_and_fits_budget_or_hits_floor(max_size_kb):
    raw = image_bytes(size=(4000, 3000), noise=True)

    data = decode_data_url(image_service.compress_image(raw, max_size_kb=max_size_kb))

    result = Image.open(io.BytesIO(data))
    assert max(result.size) <= image_service.MAX_DIMENSION
    assert result.size == (1200, 900)

    if image_service.estimated_size_kb(data) > max_size_kb:
        # Graceful return at the quality floor
        resized = image_service.fit_within(image_service.decode_image(raw))
        assert data == image_service.encode_jpeg(resized, image_service.FLOOR_QUALITY_TENTHS)


def test_small_image_is_not_upscaled():
    data = decode_data_url(image_service.compress_image(image_bytes(size=(320, 240))))
    assert Image.open(io.BytesIO(data)).size == (320, 240)


def test_png_with_alpha_is_flattened_to_jpeg():
    buffer = io.BytesIO()
    Image.new("RGBA", (300, 300), (10, 20, 30, 128)).save(buffer, format="PNG")
    data = decode_data_url(image_service.compress_image(buffer.getvalue()))
    assert Image.open(io.BytesIO(data)).format == "JPEG"


def test_budget_loop_stops_at_floor():
    image = image_service.fit_within(image_service.decode_image(image_bytes(size=(4000, 3000), noise=True)))
    data = image_service.encode_within_budget(image, target_bytes=1)
    assert data == image_service.encode_jpeg(image, image_service.FLOOR_QUALITY_TENTHS)


def test_undecodable_bytes_raise():
    with pytest.raises(ImageDecodeError):
        image_service.compress_image(b"definitely not an image")
