import struct


class ImageDecodeError(ValueError):
    """Base class for failures while decoding an image buffer."""


class MalformedImageError(ImageDecodeError):
    """The stream ends early or a read runs past the end of the buffer."""


class UnsupportedImageError(ImageDecodeError):
    """The format was recognised but the image cannot be produced."""


class ByteReader:
    """
    Forward-only cursor over an immutable byte buffer.

    Every read is bounds-checked and raises MalformedImageError instead of
    returning short data.
    """

    def __init__(self, data: bytes, offset: int = 0):
        self.data = data
        self.offset = offset

    @property
    def remaining(self) -> int:
        return max(len(self.data) - self.offset, 0)

    def read_byte(self) -> int:
        if self.offset >= len(self.data):
            raise MalformedImageError(
                f"Out of bounds: read at offset {self.offset} of {len(self.data)} bytes"
            )
        value = self.data[self.offset]
        self.offset += 1
        return value

    def read(self, size: int) -> bytes:
        end = self.offset + size
        if end > len(self.data):
            raise MalformedImageError(
                f"Out of bounds: {size} bytes requested at offset {self.offset} "
                f"of {len(self.data)} bytes"
            )
        chunk = bytes(self.data[self.offset : end])
        self.offset = end
        return chunk

    def skip(self, size: int) -> None:
        self.read(size)

    def unpack(self, fmt: str) -> tuple:
        return struct.unpack(fmt, self.read(struct.calcsize(fmt)))
