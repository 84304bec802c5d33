"""Parse HLS master and media playlists."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Dict, List, Optional

import m3u8
from m3u8.parser import ParseError

from .decryptor import SegmentKey
from .downloader import Fetcher
from .errors import DecodeError
from .models import HlsAddress, Resolution, VariantData, VariantSegment
from .urls import resolve_url

logger = logging.getLogger(__name__)


class HlsParser:
    """Parser for HLS (m3u8) playlists."""

    @staticmethod
    def parse_master(content: bytes, url: str) -> List[VariantData]:
        """
        Parse a master playlist into its variants.

        Resolution, frame rate and codecs are optional in the playlist and
        default to ``0x0``, ``0.0`` and ``""``.

        Raises:
            DecodeError: ``content`` is not a master playlist.
        """
        playlist = HlsParser._load(content, url)
        if not playlist.is_variant:
            raise DecodeError("expected a master playlist", content=content, url=url)

        variants: List[VariantData] = []
        for entry in playlist.playlists:
            info = entry.stream_info
            width, height = info.resolution or (0, 0)
            variants.append(
                VariantData(
                    resolution=Resolution(width=width, height=height),
                    bandwidth=info.bandwidth or 0,
                    fps=info.frame_rate or 0.0,
                    codecs=info.codecs or "",
                    address=HlsAddress(url=resolve_url(url, entry.uri)),
                )
            )

        logger.info("Found %d HLS variants in %s", len(variants), url)
        return variants

    @staticmethod
    async def parse_media(content: bytes, url: str, fetcher: Fetcher) -> List[VariantSegment]:
        """
        Parse a media playlist into its segments, in playlist order.

        Key URIs are fetched through ``fetcher``. A key stays active for the
        following segments until another ``EXT-X-KEY`` with a URI replaces it.
        When the key tag carries no IV, the key bytes themselves are used as
        the IV.

        Raises:
            DecodeError: ``content`` is not a valid playlist or a key is unusable.
        """
        playlist = HlsParser._load(content, url)

        segments: List[VariantSegment] = []
        key: Optional[SegmentKey] = None
        raw_keys: Dict[str, bytes] = {}

        for segment in playlist.segments:
            if segment.key is not None and segment.key.uri:
                key_url = resolve_url(url, segment.key.uri)
                raw_key = raw_keys.get(key_url)
                if raw_key is None:
                    raw_key = await fetcher.download(key_url)
                    raw_keys[key_url] = raw_key
                    logger.debug("Fetched segment key %s", key_url)

                iv = HlsParser._parse_iv(segment.key.iv, key_url) if segment.key.iv else raw_key
                try:
                    key = SegmentKey(key=raw_key, iv=iv)
                except ValueError as exc:
                    raise DecodeError(str(exc), content=raw_key, url=key_url) from exc

            segments.append(
                VariantSegment(
                    url=resolve_url(url, segment.uri),
                    length=timedelta(seconds=segment.duration or 0),
                    key=key,
                )
            )

        logger.debug("Parsed %d segments from %s", len(segments), url)
        return segments

    @staticmethod
    def _load(content: bytes, url: str) -> m3u8.M3U8:
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"playlist is not valid UTF-8: {exc}", content=content, url=url) from exc

        if not text.lstrip().startswith("#EXTM3U"):
            raise DecodeError("missing #EXTM3U header", content=content, url=url)

        # m3u8 builds its model eagerly; malformed attributes (e.g. RESOLUTION=1920)
        # surface as IndexError/TypeError from the model constructors.
        try:
            return m3u8.loads(text, uri=url)
        except (ParseError, ValueError, IndexError, TypeError) as exc:
            raise DecodeError(
                str(exc) or type(exc).__name__, content=content, url=url
            ) from exc

    @staticmethod
    def _parse_iv(value: str, key_url: str) -> bytes:
        # IV attributes are hexadecimal integers, e.g. 0x0000000000000000000000000000002A
        try:
            return int(value, 16).to_bytes(16, "big")
        except (ValueError, OverflowError) as exc:
            raise DecodeError(f"invalid IV {value!r}", content=value.encode(), url=key_url) from exc
