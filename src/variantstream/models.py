"""Dataclasses and enums shared by the HLS and DASH resolution paths."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from .decryptor import SegmentKey

Locale = str

# Locales some upstream stream sets use for the variant without burned-in subtitles.
NO_HARDSUB_LOCALES = ("", ":")


class StreamFormat(str, Enum):
    """Manifest family a stream URL points to."""

    HLS = "hls"
    DASH = "dash"


@dataclass
class RawStreamDescriptor:
    """Manifest URLs available for a single hardsub locale."""

    hls_url: Optional[str] = None
    dash_url: Optional[str] = None

    def url_for(self, fmt: StreamFormat) -> Optional[str]:
        if fmt is StreamFormat.HLS:
            return self.hls_url
        return self.dash_url

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RawStreamDescriptor":
        return cls(hls_url=data.get("hls") or None, dash_url=data.get("dash") or None)


RawStreamSet = Dict[Locale, RawStreamDescriptor]


@dataclass
class FetchConfig:
    """HTTP settings for the segment downloader."""

    headers: Dict[str, str] = field(default_factory=dict)
    connect_timeout: float = 30.0
    read_timeout: float = 60.0


@dataclass(frozen=True)
class Resolution:
    """Video resolution, ``0x0`` when the manifest does not state it."""

    width: int = 0
    height: int = 0

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class HlsAddress:
    """Location of an HLS media playlist."""

    url: str


@dataclass(frozen=True)
class DashAddress:
    """SegmentTemplate parameters of a single DASH representation."""

    representation_id: str
    base_url: str
    init_template: str
    media_template: str
    start_number: int
    # Length of each segment in milliseconds; also the number of media segments.
    segment_durations: List[int] = field(default_factory=list)
    bandwidth: int = 0


VariantAddress = Union[HlsAddress, DashAddress]


@dataclass
class VariantData:
    """A playable variant (one quality level) of a stream."""

    resolution: Resolution
    bandwidth: int
    fps: float
    codecs: str
    address: VariantAddress

    @property
    def format(self) -> StreamFormat:
        if isinstance(self.address, HlsAddress):
            return StreamFormat.HLS
        return StreamFormat.DASH

    @property
    def hls_master_url(self) -> Optional[str]:
        """URL of the HLS media playlist, for handing the download to an external tool."""
        if isinstance(self.address, HlsAddress):
            return self.address.url
        return None


@dataclass
class VariantSegment:
    """A single fetchable chunk of a variant."""

    url: str
    length: timedelta
    # Decryption key for the segment data, ``None`` for plaintext segments.
    key: Optional[SegmentKey] = None
