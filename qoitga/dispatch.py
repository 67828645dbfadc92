from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Literal, Optional, Union

from .bitmap import PixelBuffer
from .decoder import QOIDecoder
from .reader import MalformedImageError, UnsupportedImageError
from .targa import TargaDecoder

logger = logging.getLogger(__name__)

Status = Literal["ok", "not_this_format", "unsupported", "malformed"]
Decoder = Callable[[bytes], Optional[PixelBuffer]]

QOI_EXTS = {".qoi"}
TARGA_EXTS = {".tga", ".targa", ".icb", ".vda", ".vst"}

DECODERS: dict[str, Decoder] = {
    "qoi": QOIDecoder.decode,
    "targa": TargaDecoder.decode,
}


@dataclass(frozen=True)
class DecodeResult:
    status: Status
    format: Optional[str] = None
    bitmap: Optional[PixelBuffer] = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status == "ok"


def decoder_order(filename: Optional[str] = None) -> list[str]:
    """Formats to try, best guess first."""
    ext = Path(filename).suffix.lower() if filename else ""
    if ext in TARGA_EXTS:
        return ["targa", "qoi"]
    # QOI has a magic number, so it is the cheaper guess to rule out
    return ["qoi", "targa"]


def decode_image(data: bytes, filename: Optional[str] = None) -> DecodeResult:
    """
    Decode a fully loaded image buffer with the first decoder that accepts it.

    Decoders that do not recognise the data are skipped. A decoder that does
    recognise it but fails ends the search with an "unsupported" or
    "malformed" result.
    """
    for name in decoder_order(filename):
        logger.debug("Trying %s decoder on %d bytes", name, len(data))
        try:
            bitmap = DECODERS[name](data)
        except UnsupportedImageError as e:
            logger.debug("%s decoder: unsupported image (%s)", name, e)
            return DecodeResult("unsupported", format=name, reason=str(e))
        except MalformedImageError as e:
            logger.info("Malformed %s image%s: %s", name, f" {filename}" if filename else "", e)
            return DecodeResult("malformed", format=name, reason=str(e))

        if bitmap is not None:
            logger.debug("Decoded %s image %dx%d", name, bitmap.width, bitmap.height)
            return DecodeResult("ok", format=name, bitmap=bitmap)

    return DecodeResult("not_this_format", reason="No decoder recognised the data")


def decode_file(path: Union[str, Path]) -> DecodeResult:
    path = Path(path)
    return decode_image(path.read_bytes(), filename=path.name)
