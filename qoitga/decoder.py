import struct
from dataclasses import dataclass
from typing import Optional

from .bitmap import PixelBuffer
from .reader import MalformedImageError

QOI_OP_INDEX = 0x00
QOI_OP_DIFF = 0x40
QOI_OP_LUMA = 0x80
QOI_OP_RUN = 0xC0
QOI_OP_RGB = 0xFE
QOI_OP_RGBA = 0xFF

QOI_MASK_2 = 0xC0
QOI_MAGIC = b"qoif"
QOI_HEADER_SIZE = 14
QOI_END_MARKER = b"\x00\x00\x00\x00\x00\x00\x00\x01"
QOI_PIXELS_MAX = 400000000  # Safety limit (400MP)


@dataclass(frozen=True)
class QoiHeader:
    width: int
    height: int
    channels: int
    colorspace: int
    header_size: int = QOI_HEADER_SIZE


class QOIDecoder:
    """
    A class to decode QOI (Quite OK Image) files into RGBA pixel buffers.
    """

    @staticmethod
    def _hash(r: int, g: int, b: int, a: int) -> int:
        """Index position of a pixel in the 64-slot color cache."""
        return (r * 3 + g * 5 + b * 7 + a * 11) % 64

    @staticmethod
    def read_header(file_data: bytes) -> Optional[QoiHeader]:
        """
        Parse the 14-byte QOI header.

        :return: the header, or None when the buffer does not start with the QOI magic.
        :raises MalformedImageError: when the magic is present but the header is cut short.
        """
        if bytes(file_data[:4]) != QOI_MAGIC:
            return None

        if len(file_data) < QOI_HEADER_SIZE:
            raise MalformedImageError("QOI.decode: File too short for header")

        # > : Big Endian, I : unsigned int (4 bytes), B : unsigned char (1 byte)
        width, height, channels, colorspace = struct.unpack(
            ">IIBB", file_data[4:QOI_HEADER_SIZE]
        )
        return QoiHeader(width, height, channels, colorspace)

    @staticmethod
    def decode(file_data: bytes) -> Optional[PixelBuffer]:
        """
        Decode a QOI file given as a bytes-like object.

        The output always has four channels; for 3-channel files alpha stays at
        the seed value of 255 unless an RGBA opcode changes it. An end marker
        before the last pixel stops decoding early; the remaining pixels are
        left as transparent black.

        :param file_data: Bytes containing the QOI file.
        :return: PixelBuffer, or None when the data is not a QOI file.
        :raises MalformedImageError: when the stream is truncated or the
            declared size exceeds QOI_PIXELS_MAX.
        """
        header = QOIDecoder.read_header(file_data)
        if header is None:
            return None

        if header.width * header.height > QOI_PIXELS_MAX:
            raise MalformedImageError(
                f"QOI.decode: Image of {header.width}x{header.height} exceeds the pixel limit"
            )

        data = file_data
        pixel_length = header.width * header.height * 4
        result = bytearray(pixel_length)

        # Index array: 64 pixels, initialized to (0, 0, 0, 0)
        index = [(0, 0, 0, 0)] * 64

        # Previous pixel state (R, G, B, A)
        r, g, b, a = 0, 0, 0, 255

        read_pos = header.header_size
        write_pos = 0
        ended = False

        try:
            while write_pos < pixel_length:
                # The previous pixel is cached before every opcode, runs included
                index[QOIDecoder._hash(r, g, b, a)] = (r, g, b, a)

                if read_pos >= len(data):
                    break

                b1 = data[read_pos]
                read_pos += 1
                run = 1

                if b1 == 0x00 and data[read_pos - 1 : read_pos + 7] == QOI_END_MARKER:
                    ended = True
                    break

                # QOI_OP_RGB (0xFE/0b11111110)
                if b1 == QOI_OP_RGB:
                    r = data[read_pos]
                    g = data[read_pos + 1]
                    b = data[read_pos + 2]
                    read_pos += 3

                # QOI_OP_RGBA (0xFF/0b11111111)
                elif b1 == QOI_OP_RGBA:
                    r = data[read_pos]
                    g = data[read_pos + 1]
                    b = data[read_pos + 2]
                    a = data[read_pos + 3]
                    read_pos += 4

                # QOI_OP_INDEX (00xxxxxx)
                elif (b1 & QOI_MASK_2) == QOI_OP_INDEX:
                    r, g, b, a = index[b1 & 0x3F]

                # QOI_OP_DIFF (01xxxxxx)
                elif (b1 & QOI_MASK_2) == QOI_OP_DIFF:
                    # 2-bit differences with a bias of 2, wrapped to 8-bit unsigned
                    r = (r + ((b1 >> 4) & 0x03) - 2) % 256
                    g = (g + ((b1 >> 2) & 0x03) - 2) % 256
                    b = (b + (b1 & 0x03) - 2) % 256

                # QOI_OP_LUMA (10xxxxxx)
                elif (b1 & QOI_MASK_2) == QOI_OP_LUMA:
                    b2 = data[read_pos]
                    read_pos += 1

                    dg = (b1 & 0x3F) - 32
                    dr_dg = ((b2 >> 4) & 0x0F) - 8
                    db_dg = (b2 & 0x0F) - 8

                    r = (r + dg + dr_dg) % 256
                    g = (g + dg) % 256
                    b = (b + dg + db_dg) % 256

                # QOI_OP_RUN (11xxxxxx)
                else:
                    run = (b1 & 0x3F) + 1

                # Runs are clamped so nothing is written past the declared size
                run = min(run, (pixel_length - write_pos) // 4)
                result[write_pos : write_pos + 4 * run] = bytes((r, g, b, a)) * run
                write_pos += 4 * run

        except IndexError as e:
            raise MalformedImageError(
                f"QOI.decode: Truncated chunk at byte {read_pos - 1}"
            ) from e

        if write_pos < pixel_length and not ended:
            raise MalformedImageError(
                f"QOI.decode: Incomplete image, {write_pos // 4} of "
                f"{pixel_length // 4} pixels before the data ran out"
            )

        return PixelBuffer(header.width, header.height, bytes(result))
