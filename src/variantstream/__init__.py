"""variantstream: resolve HLS and DASH streams into ordered, decryptable segments."""

from .decryptor import SegmentKey, decrypt, write_segment
from .downloader import SegmentDownloader
from .errors import DecodeError, InternalError, NotFoundError, StreamError, TransportError
from .models import (
    FetchConfig,
    RawStreamDescriptor,
    Resolution,
    StreamFormat,
    VariantData,
    VariantSegment,
)
from .stream import Stream

__all__ = [
    "DecodeError",
    "FetchConfig",
    "InternalError",
    "NotFoundError",
    "RawStreamDescriptor",
    "Resolution",
    "SegmentDownloader",
    "SegmentKey",
    "Stream",
    "StreamError",
    "StreamFormat",
    "TransportError",
    "VariantData",
    "VariantSegment",
    "decrypt",
    "write_segment",
]
