from .bitmap import PixelBuffer
from .decoder import QoiHeader, QOIDecoder
from .dispatch import DecodeResult, decode_file, decode_image
from .reader import ImageDecodeError, MalformedImageError, UnsupportedImageError
from .targa import TargaDataType, TargaDecoder, TargaFooter, TargaHeader
from .utils import load_image

__all__ = [
    "PixelBuffer",
    "QOIDecoder",
    "QoiHeader",
    "TargaDecoder",
    "TargaDataType",
    "TargaHeader",
    "TargaFooter",
    "DecodeResult",
    "decode_image",
    "decode_file",
    "load_image",
    "ImageDecodeError",
    "MalformedImageError",
    "UnsupportedImageError",
]
