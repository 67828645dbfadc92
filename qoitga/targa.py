import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Iterator, Optional

from .bitmap import PixelBuffer
from .reader import ByteReader, MalformedImageError, UnsupportedImageError

TGA_HEADER_SIZE = 18
TGA_FOOTER_SIZE = 26
TGA_SIGNATURE = b"TRUEVISION-XFILE.\x00"
TGA_PIXELS_MAX = 400000000  # Safety limit (400MP)

# Accepted header values. Only these combinations are treated as TARGA.
TGA_COLOR_MAP_TYPES = (0, 1, 2, 3, 9, 10, 11)
TGA_BITS_PER_PIXEL = (15, 16, 24, 32)

# image_descriptor bit that mirrors the file rows in the output
TGA_FLIP_MASK = 0b1000

Pixel = tuple
Unpacker = Callable[[ByteReader], Pixel]


class TargaDataType(IntEnum):
    NoImage = 0
    ColorMapped = 1
    Rgb = 2
    BlackAndWhite = 3
    ColorMappedRLE = 9
    RgbRLE = 10
    BlackAndWhiteCompressed = 11


RLE_DATA_TYPES = (TargaDataType.ColorMappedRLE, TargaDataType.RgbRLE)


@dataclass(frozen=True)
class TargaHeader:
    id_length: int
    color_map_type: int
    data_type: TargaDataType
    color_map_origin: int
    color_map_length: int
    color_map_depth: int
    x_origin: int
    y_origin: int
    width: int
    height: int
    bits_per_pixel: int
    image_descriptor: int
    image_id: str = ""

    @property
    def header_size(self) -> int:
        return TGA_HEADER_SIZE + self.id_length

    @property
    def is_rle(self) -> bool:
        return self.data_type in RLE_DATA_TYPES

    @property
    def flipped(self) -> bool:
        return bool(self.image_descriptor & TGA_FLIP_MASK)


@dataclass(frozen=True)
class TargaFooter:
    extension_area_offset: int
    developer_directory_offset: int


def _unpack_32(reader: ByteReader) -> Pixel:
    return tuple(reader.read(4))


def _unpack_24(reader: ByteReader) -> Pixel:
    r, g, b = reader.read(3)
    return (r, g, b, 255)


def _unpack_16(reader: ByteReader) -> Pixel:
    # 5 bits per channel, packed little-endian: -RRRRRGG GGGBBBBB
    (word,) = reader.unpack("<H")
    return ((word >> 10) & 0x1F, (word >> 5) & 0x1F, word & 0x1F, 255)


def _unpack_16_rescaled(reader: ByteReader) -> Pixel:
    r, g, b, a = _unpack_16(reader)
    return (r * 255 // 31, g * 255 // 31, b * 255 // 31, a)


_UNPACKERS = {
    32: _unpack_32,
    24: _unpack_24,
    16: _unpack_16,
    15: _unpack_16,
}


def _pixel_stream(reader: ByteReader, unpack: Unpacker, rle: bool) -> Iterator[Pixel]:
    """Yield decoded pixels in file order, expanding RLE packets when enabled."""
    if not rle:
        while True:
            yield unpack(reader)

    while True:
        control = reader.read_byte()
        count = (control & 0x7F) + 1
        if control & 0x80:
            # Repeated packet: one pixel, replayed count times
            pixel = unpack(reader)
            for _ in range(count):
                yield pixel
        else:
            # Raw packet: count distinct pixels
            for _ in range(count):
                yield unpack(reader)


class TargaDecoder:
    """
    Decoder for TARGA (TGA) images.

    Color-mapped images consume their pixel data like true-color images, but
    palette indices are not resolved against the color map.
    """

    @staticmethod
    def read_header(file_data: bytes) -> Optional[TargaHeader]:
        """
        Parse the fixed 18-byte header and the optional identification field.

        :return: the header, or None when the fields do not describe a TARGA image.
        :raises MalformedImageError: when the identification field runs past the buffer.
        """
        if len(file_data) < TGA_HEADER_SIZE:
            return None

        reader = ByteReader(file_data)
        (
            id_length,
            color_map_type,
            data_type_code,
            color_map_origin,
            color_map_length,
            color_map_depth,
            x_origin,
            y_origin,
            width,
            height,
            bits_per_pixel,
            image_descriptor,
        ) = reader.unpack("<BBBHHBHHHHBB")

        if color_map_type not in TGA_COLOR_MAP_TYPES:
            return None
        if bits_per_pixel not in TGA_BITS_PER_PIXEL:
            return None
        try:
            data_type = TargaDataType(data_type_code)
        except ValueError:
            return None

        image_id = reader.read(id_length).decode("latin-1") if id_length else ""

        return TargaHeader(
            id_length=id_length,
            color_map_type=color_map_type,
            data_type=data_type,
            color_map_origin=color_map_origin,
            color_map_length=color_map_length,
            color_map_depth=color_map_depth,
            x_origin=x_origin,
            y_origin=y_origin,
            width=width,
            height=height,
            bits_per_pixel=bits_per_pixel,
            image_descriptor=image_descriptor,
            image_id=image_id,
        )

    @staticmethod
    def read_footer(file_data: bytes) -> Optional[TargaFooter]:
        """Return the TGA 2.0 footer offsets, or None when the file has no footer."""
        if len(file_data) < TGA_FOOTER_SIZE:
            return None

        trailer = bytes(file_data[-TGA_FOOTER_SIZE:])
        if trailer[8:] != TGA_SIGNATURE:
            return None

        extension_offset, developer_offset = struct.unpack("<II", trailer[:8])
        return TargaFooter(extension_offset, developer_offset)

    @staticmethod
    def decode(file_data: bytes, rescale: bool = False) -> Optional[PixelBuffer]:
        """
        Decode a TARGA file given as a bytes-like object.

        :param file_data: Bytes containing the TARGA file.
        :param rescale: Stretch 15/16-bit channels from 0..31 to 0..255.
                        Off by default, leaving the raw 5-bit values.
        :return: PixelBuffer, or None when the data is not a TARGA file.
        :raises UnsupportedImageError: for images declared as containing no image data.
        :raises MalformedImageError: when the pixel data is truncated
            or the declared size exceeds TGA_PIXELS_MAX.
        """
        header = TargaDecoder.read_header(file_data)
        if header is None:
            return None

        if header.data_type == TargaDataType.NoImage:
            raise UnsupportedImageError("TGA.decode: The file contains no image data")

        reader = ByteReader(file_data, header.header_size)

        # The color map table is skipped, not interpreted
        if header.color_map_type == 1:
            reader.skip(header.color_map_length * ((header.color_map_depth + 7) // 8))

        unpack = _UNPACKERS[header.bits_per_pixel]
        if rescale and header.bits_per_pixel in (15, 16):
            unpack = _unpack_16_rescaled

        width, height = header.width, header.height
        if width * height > TGA_PIXELS_MAX:
            raise MalformedImageError(
                f"TGA.decode: Image of {width}x{height} exceeds the pixel limit"
            )

        # Smallest pixel data that can cover the image, checked before allocating.
        # An RLE packet covers at most 128 pixels.
        pixel_size = (header.bits_per_pixel + 7) // 8
        if header.is_rle:
            needed = -(-(width * height) // 128) * (1 + pixel_size)
        else:
            needed = width * height * pixel_size
        if reader.remaining < needed:
            raise MalformedImageError(
                f"TGA.decode: At least {needed} bytes of pixel data expected, "
                f"{reader.remaining} available"
            )

        stream = _pixel_stream(reader, unpack, header.is_rle)

        row_length = width * 4
        result = bytearray(row_length * height)

        for j in range(height):
            row = height - 1 - j if header.flipped else j
            pos = row * row_length
            for _ in range(width):
                result[pos : pos + 4] = bytes(next(stream))
                pos += 4

        return PixelBuffer(width, height, bytes(result))
