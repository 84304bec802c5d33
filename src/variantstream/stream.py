"""Entry point tying locale selection, manifest parsing and segment sequencing together."""

from __future__ import annotations

import logging
from typing import BinaryIO, List, Optional, Tuple

from . import decryptor, sequencer
from .dash_parser import DashParser
from .downloader import Fetcher
from .hls_parser import HlsParser
from .locale_resolver import list_hardsub_locales, resolve_stream_url
from .models import Locale, RawStreamSet, StreamFormat, VariantData, VariantSegment

logger = logging.getLogger(__name__)


class Stream:
    """Resolves the raw streams of one playable item into variants and segments.

    Nothing is cached: every call fetches and parses the manifests again.
    """

    def __init__(self, variants: RawStreamSet, fetcher: Fetcher) -> None:
        """
        Args:
            variants: Raw manifest URLs keyed by hardsub locale
            fetcher: Collaborator used for every manifest, key and segment request
        """
        self.variants = variants
        self.fetcher = fetcher

    def hardsub_locales(self) -> List[Locale]:
        """Locales usable as ``hardsub`` argument of the variant methods."""
        return list_hardsub_locales(self.variants)

    async def hls_variants(self, hardsub: Optional[Locale] = None) -> List[VariantData]:
        """
        Return the HLS variants (video and audio combined) for a hardsub locale.

        ``NotFoundError("no stream available")`` usually means the locale only
        has DRM protected streams.
        """
        url = resolve_stream_url(self.variants, hardsub, StreamFormat.HLS)
        logger.info("Resolving HLS master playlist %s", url)
        raw_master = await self.fetcher.download(url)
        return HlsParser.parse_master(raw_master, url)

    async def dash_variants(
        self, hardsub: Optional[Locale] = None
    ) -> Tuple[List[VariantData], List[VariantData]]:
        """Return ``(video, audio)`` DASH variants for a hardsub locale."""
        url = resolve_stream_url(self.variants, hardsub, StreamFormat.DASH)
        logger.info("Resolving DASH manifest %s", url)
        raw_mpd = await self.fetcher.download(url)
        return DashParser.parse_variants(raw_mpd, url)

    async def segments(self, variant: VariantData) -> List[VariantSegment]:
        return await sequencer.segments_of(variant, self.fetcher)

    async def write_segment(self, segment: VariantSegment, sink: BinaryIO) -> int:
        return await decryptor.write_segment(segment, self.fetcher, sink)
