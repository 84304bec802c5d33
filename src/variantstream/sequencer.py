"""Expand variants into their ordered segment lists."""

from __future__ import annotations

import logging
import re
from datetime import timedelta
from typing import List

from .downloader import Fetcher
from .errors import InternalError
from .hls_parser import HlsParser
from .models import DashAddress, HlsAddress, VariantData, VariantSegment

logger = logging.getLogger(__name__)

_FORMAT_TAG = re.compile(r"\$(\w+)%(0?)(\d*)([diouxX])\$")


async def segments_of(variant: VariantData, fetcher: Fetcher) -> List[VariantSegment]:
    """Return all segments the variant is made of, in playback order."""
    if isinstance(variant.address, HlsAddress):
        return await hls_segments(variant, fetcher)
    if isinstance(variant.address, DashAddress):
        return dash_segments(variant)
    raise InternalError(f"unknown variant address {type(variant.address).__name__}")


async def hls_segments(variant: VariantData, fetcher: Fetcher) -> List[VariantSegment]:
    address = variant.address
    if not isinstance(address, HlsAddress):
        raise InternalError("variant url should be hls")

    raw_playlist = await fetcher.download(address.url)
    return await HlsParser.parse_media(raw_playlist, address.url, fetcher)


def dash_segments(variant: VariantData) -> List[VariantSegment]:
    """
    Build the segment list of a DASH variant.

    The first segment is always the initialization segment, with zero length.
    DASH segments are never encrypted.
    """
    address = variant.address
    if not isinstance(address, DashAddress):
        raise InternalError("variant url should be dash")

    rep_id = address.representation_id
    segments = [
        VariantSegment(
            url=address.base_url
            + fill_template(
                address.init_template,
                rep_id=rep_id,
                number=address.start_number,
                bandwidth=address.bandwidth,
            ),
            length=timedelta(0),
        )
    ]

    for i, duration in enumerate(address.segment_durations):
        segments.append(
            VariantSegment(
                url=address.base_url
                + fill_template(
                    address.media_template,
                    rep_id=rep_id,
                    number=address.start_number + i,
                    bandwidth=address.bandwidth,
                ),
                length=timedelta(milliseconds=duration or 0),
            )
        )

    logger.debug("Built %d segments for representation %s", len(segments), rep_id)
    return segments


def fill_template(template: str, *, rep_id: str, number: int, bandwidth: int) -> str:
    """Substitute the ``$...$`` identifiers of a SegmentTemplate URL."""
    if not template:
        return ""

    result = template.replace("$$", "\x00")
    result = result.replace("$RepresentationID$", rep_id)
    result = result.replace("$Number$", str(number))
    result = result.replace("$Bandwidth$", str(bandwidth))

    def replace(match: re.Match) -> str:
        var_name, zero_flag, width_str, _ = match.groups()
        value = {"Number": number, "Bandwidth": bandwidth}.get(var_name)
        if value is None:
            return match.group(0)

        value_str = str(value)
        width = int(width_str) if width_str else 0
        if width > 0:
            value_str = value_str.rjust(width, "0" if zero_flag == "0" else " ")
        return value_str

    result = _FORMAT_TAG.sub(replace, result)
    return result.replace("\x00", "$")
