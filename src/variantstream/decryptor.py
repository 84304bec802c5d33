"""AES-128-CBC decryption helpers for HLS segments."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, BinaryIO, Optional

from Crypto.Cipher import AES
from Crypto.Util.Padding import pad, unpad

from .errors import DecodeError

if TYPE_CHECKING:
    from .downloader import Fetcher
    from .models import VariantSegment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SegmentKey:
    """Key material of an AES-128-CBC encrypted segment.

    Only the key and IV are stored; :meth:`cipher` builds a fresh cipher for
    each use, so one key may be attached to many segments.
    """

    key: bytes
    iv: bytes

    def __post_init__(self) -> None:
        if len(self.key) != 16:
            raise ValueError(f"AES-128 key must be 16 bytes, got {len(self.key)}")
        if len(self.iv) != AES.block_size:
            raise ValueError(f"IV must be {AES.block_size} bytes, got {len(self.iv)}")

    def cipher(self):
        return AES.new(self.key, AES.MODE_CBC, self.iv)

    def __repr__(self) -> str:
        return f"SegmentKey(key=<{len(self.key)} bytes>, iv={self.iv.hex()})"


def decrypt(data: bytes, key: Optional[SegmentKey]) -> bytes:
    """Decrypt a raw segment. Plaintext segments (``key is None``) are returned unchanged."""
    if key is None:
        return data

    try:
        return unpad(key.cipher().decrypt(data), AES.block_size)
    except ValueError as exc:
        raise DecodeError(str(exc), content=bytes(data)) from exc


def encrypt(data: bytes, key: SegmentKey) -> bytes:
    """PKCS7-pad and encrypt ``data``; the inverse of :func:`decrypt`."""
    return key.cipher().encrypt(pad(data, AES.block_size))


async def fetch_and_decrypt(segment: "VariantSegment", fetcher: Fetcher) -> bytes:
    """Download a segment and return its decrypted bytes."""
    raw = await fetcher.download(segment.url)
    try:
        return decrypt(raw, segment.key)
    except DecodeError as exc:
        raise exc.with_source(raw, segment.url) from exc


async def write_segment(segment: "VariantSegment", fetcher: Fetcher, sink: BinaryIO) -> int:
    """
    Download, decrypt and write one segment to ``sink``.

    Nothing is written unless the whole segment decrypted successfully.

    Returns:
        Number of bytes written
    """
    data = await fetch_and_decrypt(segment, fetcher)
    sink.write(data)
    logger.debug("Wrote %d bytes from %s", len(data), segment.url)
    return len(data)
