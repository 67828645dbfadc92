import struct

import numpy as np
import pytest
from PIL import Image

import converter
import qoi as OfficialQOI
from qoitga import ImageDecodeError, decode_file, decode_image, load_image
from qoitga.dispatch import decoder_order

QOI_DATA = (
    b"qoif"
    + struct.pack(">IIBB", 2, 1, 4, 0)
    + bytes([0xFF, 0x10, 0x20, 0x30, 0x40, 0xFF, 0x50, 0x60, 0x70, 0x80])
    + b"\x00\x00\x00\x00\x00\x00\x00\x01"
)

# 2x1, 24-bit, uncompressed
TGA_DATA = struct.pack("<BBBHHBHHHHBB", 0, 0, 2, 0, 0, 0, 0, 0, 2, 1, 24, 0) + bytes(
    [1, 2, 3, 4, 5, 6]
)

TGA_NO_IMAGE = struct.pack("<BBBHHBHHHHBB", 0, 0, 0, 0, 0, 0, 0, 0, 2, 1, 24, 0)


def test_decoder_order():
    assert decoder_order("photo.TGA") == ["targa", "qoi"]
    assert decoder_order("photo.qoi") == ["qoi", "targa"]
    assert decoder_order(None) == ["qoi", "targa"]


def test_qoi_by_signature():
    result = decode_image(QOI_DATA)

    assert result.ok
    assert result.format == "qoi"
    assert result.bitmap.pixel(1, 0) == (80, 96, 112, 128)


def test_targa_by_suffix():
    result = decode_image(TGA_DATA, filename="image.tga")

    assert result.ok
    assert result.format == "targa"
    assert result.bitmap.pixel(0, 0) == (1, 2, 3, 255)


def test_targa_falls_through_qoi_check():
    result = decode_image(TGA_DATA)

    assert result.status == "ok"
    assert result.format == "targa"


def test_misnamed_qoi_file_still_decodes():
    result = decode_image(QOI_DATA, filename="actually_qoi.tga")

    assert result.format == "qoi"


def test_unknown_data():
    result = decode_image(b"\x89PNG\r\n\x1a\n" + b"\x00" * 32)

    assert result.status == "not_this_format"
    assert result.bitmap is None
    assert not result.ok


def test_no_image_targa_is_unsupported():
    result = decode_image(TGA_NO_IMAGE, filename="empty.tga")

    assert result.status == "unsupported"
    assert result.format == "targa"


def test_truncated_qoi_is_malformed():
    result = decode_image(QOI_DATA[:20])

    assert result.status == "malformed"
    assert result.format == "qoi"
    assert result.reason


def test_oversized_qoi_header_is_malformed():
    data = b"qoif" + struct.pack(">IIBB", 0xFFFFFFFF, 0xFFFFFFFF, 4, 0) + QOI_DATA[-8:]

    result = decode_image(data)

    assert result.status == "malformed"
    assert result.format == "qoi"


def test_oversized_targa_header_is_malformed():
    data = struct.pack("<BBBHHBHHHHBB", 0, 0, 2, 0, 0, 0, 0, 0, 65535, 65535, 24, 0)

    result = decode_image(data, filename="huge.tga")

    assert result.status == "malformed"
    assert result.format == "targa"


def test_decode_file_accepts_str(tmp_path):
    path = tmp_path / "two.qoi"
    path.write_bytes(QOI_DATA)

    result = decode_file(str(path))

    assert result.ok
    assert result.format == "qoi"


def test_decode_file(tmp_path):
    path = tmp_path / "two.qoi"
    path.write_bytes(QOI_DATA)

    result = decode_file(path)

    assert result.ok
    assert result.bitmap.width == 2


def test_load_image_native_format(tmp_path):
    path = tmp_path / "two.tga"
    path.write_bytes(TGA_DATA)

    pixel_data, desc = load_image(str(path))

    assert pixel_data.shape == (1, 2, 4)
    assert desc == {"width": 2, "height": 1, "channels": 4, "colorspace": 0}


def test_load_image_through_pillow(tmp_path):
    path = tmp_path / "plain.png"
    Image.new("RGB", (3, 2), (5, 6, 7)).save(path)

    pixel_data, desc = load_image(str(path))

    assert pixel_data.shape == (2, 3, 3)
    assert desc["channels"] == 3


def test_load_image_rejects_bad_file(tmp_path):
    path = tmp_path / "broken.qoi"
    path.write_bytes(QOI_DATA[:20])

    with pytest.raises(ImageDecodeError):
        load_image(str(path))


def test_convert_targa_to_png(tmp_path):
    path = tmp_path / "two.tga"
    path.write_bytes(TGA_DATA)

    out_path = converter.convert(path)

    assert out_path == tmp_path / "two.png"
    with Image.open(out_path) as img:
        assert img.mode == "RGBA"
        assert img.tobytes() == bytes([1, 2, 3, 255, 4, 5, 6, 255])


def test_convert_targa_to_qoi(tmp_path):
    path = tmp_path / "two.tga"
    path.write_bytes(TGA_DATA)
    qoi_path = tmp_path / "two.qoi"

    converter.convert(path, qoi_path)

    decoded = OfficialQOI.decode(qoi_path.read_bytes())
    assert np.array_equal(decoded, np.array([[[1, 2, 3, 255], [4, 5, 6, 255]]], dtype=np.uint8))

    # and back through our own decoder
    result = decode_file(qoi_path)
    assert result.ok
    assert result.bitmap.pixels == bytes([1, 2, 3, 255, 4, 5, 6, 255])
