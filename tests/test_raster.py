import numpy as np
import pytest

from pyimgtensor.errors import InvalidInput
from pyimgtensor.inputs.pixel_format import PixelFormat
from pyimgtensor.raster import RasterImage


def test_byte_bgra_get_argb_packs_channels():
    pixels = np.zeros((2, 3, 4), dtype=np.uint8)
    pixels[1, 2] = [0x33, 0x22, 0x11, 0x80]  # B,G,R,A
    image = RasterImage(pixels, PixelFormat.BYTE_BGRA)

    assert image.size == (3, 2)
    assert image.get_argb(2, 1) == 0x80112233
    assert image.get_argb(0, 0) == 0


def test_byte_rgb_is_opaque():
    pixels = np.zeros((1, 1, 3), dtype=np.uint8)
    pixels[0, 0] = [0x11, 0x22, 0x33]
    image = RasterImage(pixels, "byte_rgb")
    assert image.get_argb(0, 0) == 0xFF112233


def test_packed_accepts_signed_two_complement_values():
    image = RasterImage(np.array([[-1, -16777216]], dtype=np.int64), PixelFormat.INT_ARGB)
    assert image.get_argb(0, 0) == 0xFFFFFFFF
    assert image.get_argb(1, 0) == 0xFF000000


def test_read_pixels_native_byte_orders():
    argb = np.array([[0xAA112233]], dtype=np.uint32)

    packed = RasterImage(argb, PixelFormat.INT_ARGB)
    assert packed.read_pixels().tolist() == [0xAA, 0x11, 0x22, 0x33]

    bgra = RasterImage.from_argb(argb, PixelFormat.BYTE_BGRA)
    assert bgra.read_pixels().tolist() == [0x33, 0x22, 0x11, 0xAA]

    rgb = RasterImage.from_argb(argb, PixelFormat.BYTE_RGB)
    assert rgb.read_pixels().tolist() == [0x11, 0x22, 0x33]


def test_indexed_image_expands_palette():
    palette = [0xFF0000FF, 0x80FF0000]
    image = RasterImage(np.array([[0, 1], [1, 0]], dtype=np.uint8), "byte_indexed", palette=palette)

    assert image.get_argb(1, 0) == 0x80FF0000
    assert image.to_argb().tolist() == [[0xFF0000FF, 0x80FF0000], [0x80FF0000, 0xFF0000FF]]
    assert image.read_pixels().size == 2 * 2 * 4
    assert image.palette.tolist() == palette


def test_indexed_image_rejects_out_of_range_index():
    with pytest.raises(ValueError):
        RasterImage(np.array([[0, 2]], dtype=np.uint8), "byte_indexed", palette=[0, 1])


def test_indexed_image_requires_palette():
    with pytest.raises(ValueError):
        RasterImage(np.zeros((2, 2), dtype=np.uint8), PixelFormat.BYTE_INDEXED)


@pytest.mark.parametrize(
    "fmt,shape",
    [
        (PixelFormat.INT_ARGB, (2, 2, 4)),
        (PixelFormat.BYTE_BGRA, (2, 2, 3)),
        (PixelFormat.BYTE_RGB, (2, 2)),
    ],
)
def test_rejects_bad_shapes(fmt, shape):
    with pytest.raises(ValueError):
        RasterImage(np.zeros(shape, dtype=np.uint8), fmt)


def test_rejects_none_and_empty_pixels():
    with pytest.raises(InvalidInput):
        RasterImage(None, PixelFormat.INT_ARGB)
    with pytest.raises(InvalidInput):
        RasterImage(np.zeros((0, 3), dtype=np.uint32), PixelFormat.INT_ARGB)
    with pytest.raises(InvalidInput):
        RasterImage.blank(0, 4)


@pytest.mark.parametrize("fmt", [PixelFormat.INT_ARGB, PixelFormat.BYTE_BGRA_PRE])
def test_set_argb_writes_pixel(fmt):
    image = RasterImage.blank(4, 3, fmt)
    image.set_argb(3, 2, 0x7F010203)
    assert image.get_argb(3, 2) == 0x7F010203
    assert image.get_argb(0, 0) == 0


def test_set_argb_rejects_indexed_and_out_of_bounds():
    indexed = RasterImage(np.zeros((1, 1), dtype=np.uint8), "byte_indexed", palette=[0])
    with pytest.raises(ValueError):
        indexed.set_argb(0, 0, 0xFFFFFFFF)

    image = RasterImage.blank(2, 2)
    with pytest.raises(IndexError):
        image.set_argb(2, 0, 0)


def test_crop_returns_new_image_with_same_format():
    argb = np.arange(12, dtype=np.uint32).reshape(3, 4)
    image = RasterImage.from_argb(argb, PixelFormat.BYTE_BGRA)
    cropped = image.crop(1, 1, 3, 2)

    assert cropped is not image
    assert cropped.pixel_format is PixelFormat.BYTE_BGRA
    assert cropped.size == (3, 2)
    assert np.array_equal(cropped.to_argb(), argb[1:3, 1:4])

    with pytest.raises(ValueError):
        image.crop(2, 0, 3, 1)


def test_pixels_view_is_read_only():
    image = RasterImage.blank(2, 2)
    with pytest.raises(ValueError):
        image.pixels[0, 0] = 1


def test_unknown_format_has_no_argb_interpretation():
    image = RasterImage(np.zeros((2, 2), dtype=np.uint8), PixelFormat.UNKNOWN)
    assert image.read_pixels().size == 4
    with pytest.raises(ValueError):
        image.get_argb(0, 0)
