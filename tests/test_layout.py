import numpy as np
import pytest

from pyimgtensor.errors import CorruptPixelData, InvalidInput, InvalidShape
from pyimgtensor.inputs.pixel_format import PixelFormat
from pyimgtensor.layout import to_image, to_packed_matrix, to_planar_tensor
from pyimgtensor.raster import RasterImage


def _random_argb(rng, width, height, *, alpha):
    shape = (height, width)
    if alpha:
        a = rng.integers(0, 256, size=shape, dtype=np.uint32)
    else:
        a = np.full(shape, 0xFF, dtype=np.uint32)
    r = rng.integers(0, 256, size=shape, dtype=np.uint32)
    g = rng.integers(0, 256, size=shape, dtype=np.uint32)
    b = rng.integers(0, 256, size=shape, dtype=np.uint32)
    return (a << 24) | (r << 16) | (g << 8) | b


class _BufferReader:
    """Minimal reader exposing only what the forward conversion needs."""

    def __init__(self, data, width, height, pixel_format):
        self.width = width
        self.height = height
        self.pixel_format = pixel_format
        self._data = data

    def read_pixels(self):
        return self._data


def test_packed_extraction_matches_per_pixel_reads():
    rng = np.random.default_rng(10)
    image = RasterImage(_random_argb(rng, 37, 23, alpha=True), PixelFormat.INT_ARGB)

    arr = to_packed_matrix(image)

    assert arr.shape == (23, 37)
    assert arr.dtype == np.uint32
    for i in range(image.height):
        for j in range(image.width):
            assert int(arr[i, j]) == image.get_argb(j, i)


@pytest.mark.parametrize(
    "fmt", [PixelFormat.INT_ARGB, PixelFormat.BYTE_BGRA, PixelFormat.BYTE_RGB]
)
def test_bgr_planes_rebuild_packed_color(fmt):
    rng = np.random.default_rng(10)
    src = _random_argb(rng, 31, 19, alpha=False)
    image = RasterImage.from_argb(src, fmt)

    tensor = to_planar_tensor(image, channels=3)

    assert tensor.shape == (3, 19, 31)
    assert tensor.dtype == np.float32
    t = tensor.astype(np.uint32)
    dst = (0xFF << 24) | (t[2] << 16) | (t[1] << 8) | (t[0] & 0xFF)
    assert np.array_equal(dst, src)


@pytest.mark.parametrize("fmt", [PixelFormat.INT_ARGB_PRE, PixelFormat.BYTE_BGRA_PRE])
def test_four_band_tensor_puts_alpha_last(fmt):
    rng = np.random.default_rng(3)
    src = _random_argb(rng, 8, 5, alpha=True)
    tensor = to_planar_tensor(RasterImage.from_argb(src, fmt))

    assert tensor.shape == (4, 5, 8)
    assert np.array_equal(tensor[0].astype(np.uint32), src & 0xFF)
    assert np.array_equal(tensor[2].astype(np.uint32), (src >> 16) & 0xFF)
    assert np.array_equal(tensor[3].astype(np.uint32), src >> 24)


def test_indexed_image_converts_through_palette():
    palette = [0xFF0000FF, 0x80FF0000]
    image = RasterImage(np.array([[0, 1], [1, 0]], dtype=np.uint8), "byte_indexed", palette=palette)

    tensor = to_planar_tensor(image, dtype=np.uint8)

    assert tensor.shape == (4, 2, 2)
    assert tensor[0].tolist() == [[255, 0], [0, 255]]  # blue
    assert tensor[2].tolist() == [[0, 255], [255, 0]]  # red
    assert tensor[3].tolist() == [[255, 128], [128, 255]]


def test_signed_bytes_decode_as_unsigned():
    data = np.array([-1, 0, 127, -128], dtype=np.int8)  # B,G,R,A
    reader = _BufferReader(data, 1, 1, PixelFormat.BYTE_BGRA)

    tensor = to_planar_tensor(reader)

    assert tensor[:, 0, 0].tolist() == [255.0, 0.0, 127.0, 128.0]


def test_raw_bytes_buffer_is_accepted():
    reader = _BufferReader(bytes([1, 2, 3, 4, 5, 6]), 2, 1, PixelFormat.BYTE_RGB)
    tensor = to_planar_tensor(reader, dtype=np.int32)
    assert tensor[:, 0, :].tolist() == [[3, 6], [2, 5], [1, 4]]


def test_channels_truncate_and_clamp():
    image = RasterImage.blank(4, 2, PixelFormat.BYTE_BGRA)
    assert to_planar_tensor(image, channels=3).shape == (3, 2, 4)
    assert to_planar_tensor(image, channels=1).shape == (1, 2, 4)
    assert to_planar_tensor(image, channels=6).shape == (4, 2, 4)
    with pytest.raises(ValueError):
        to_planar_tensor(image, channels=0)


def test_buffer_length_mismatch_raises():
    reader = _BufferReader(np.zeros(7, dtype=np.uint8), 1, 2, PixelFormat.BYTE_BGRA)
    with pytest.raises(CorruptPixelData):
        to_planar_tensor(reader)


def test_unknown_format_degrades_to_empty_tensor():
    image = RasterImage(np.zeros((3, 5), dtype=np.uint8), PixelFormat.UNKNOWN)
    tensor = to_planar_tensor(image)
    assert tensor.shape == (0, 3, 5)

    reader = _BufferReader(b"", 2, 2, None)
    assert to_planar_tensor(reader).shape == (0, 2, 2)


def test_reader_with_format_name_converts_like_member():
    data = np.array([-1, 0, 127, -128], dtype=np.int8)  # B,G,R,A
    reader = _BufferReader(data, 1, 1, "byte_bgra")

    tensor = to_planar_tensor(reader)

    assert tensor[:, 0, 0].tolist() == [255.0, 0.0, 127.0, 128.0]


@pytest.mark.parametrize("fmt", ["yuv420", 7])
def test_reader_with_unrecognized_format_gives_empty_tensor(fmt):
    reader = _BufferReader(np.zeros(12, dtype=np.uint8), 3, 2, fmt)
    tensor = to_planar_tensor(reader, dtype=np.uint8)
    assert tensor.shape == (0, 2, 3)
    assert tensor.dtype == np.uint8


def test_none_image_raises_invalid_input():
    with pytest.raises(InvalidInput):
        to_planar_tensor(None)
    with pytest.raises(InvalidInput):
        to_packed_matrix(None)


def test_to_image_inverts_planar_tensor():
    rng = np.random.default_rng(7)
    src = _random_argb(rng, 12, 9, alpha=False)
    tensor = to_planar_tensor(RasterImage(src, PixelFormat.INT_ARGB), channels=3)

    image = to_image(tensor)

    assert image.pixel_format is PixelFormat.INT_ARGB
    assert image.size == (12, 9)
    assert np.array_equal(image.to_argb(), src)


def test_to_image_rgb_order_reads_plane_zero_as_red():
    tensor = np.zeros((3, 1, 2), dtype=np.float32)
    tensor[0] = 200
    tensor[2, 0, 1] = 10

    bgr = to_image(tensor)
    rgb = to_image(tensor, channel_order="rgb")

    assert bgr.get_argb(0, 0) == 0xFF0000C8
    assert rgb.get_argb(0, 0) == 0xFFC80000
    assert rgb.get_argb(1, 0) == 0xFFC8000A


def test_to_image_rounds_and_clips():
    tensor = np.zeros((3, 1, 1))
    tensor[:, 0, 0] = [-5.0, 127.6, 300.0]
    image = to_image(tensor)
    assert image.get_argb(0, 0) == 0xFFFF8000


def test_to_image_does_not_modify_input():
    tensor = np.full((3, 2, 2), 400.0)
    to_image(tensor)
    assert np.all(tensor == 400.0)


def test_to_image_accepts_leading_singleton_axes():
    image = to_image(np.zeros((1, 3, 4, 5)))
    assert image.size == (5, 4)


@pytest.mark.parametrize("shape", [(4, 5), (2, 4, 5), (2, 3, 4, 5), (3, 0, 2)])
def test_to_image_rejects_bad_shapes(shape):
    with pytest.raises(InvalidShape):
        to_image(np.zeros(shape))


def test_to_image_rejects_unknown_channel_order():
    with pytest.raises(ValueError):
        to_image(np.zeros((3, 2, 2)), channel_order="gbr")
