"""Parse DASH MPD manifests into SegmentTemplate based variants."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from lxml import etree

from .errors import DecodeError
from .models import DashAddress, Resolution, VariantData
from .urls import base_dir, resolve_url

logger = logging.getLogger(__name__)


@dataclass
class DashTimelineEntry:
    """One ``<S>`` element of a SegmentTimeline."""

    duration: int
    repeat: int = 0


@dataclass
class DashSegmentTemplate:
    """SegmentTemplate attributes of an adaptation set."""

    initialization: Optional[str]
    media: Optional[str]
    start_number: Optional[int]
    timeline: Optional[List[DashTimelineEntry]]


@dataclass
class DashRepresentation:
    """Represents a DASH representation (quality level)."""

    id: Optional[str]
    base_urls: List[str]
    bandwidth: Optional[int]
    codecs: Optional[str]
    width: Optional[int]
    height: Optional[int]
    frame_rate: Optional[str]


@dataclass
class DashAdaptationSet:
    """A group of interchangeable representations."""

    max_width: Optional[int]
    max_height: Optional[int]
    segment_template: Optional[DashSegmentTemplate]
    representations: List[DashRepresentation] = field(default_factory=list)

    @property
    def is_video(self) -> bool:
        return self.max_width is not None or self.max_height is not None


class DashParser:
    """Parser for DASH MPD manifests."""

    DASH_NS = {
        "mpd": "urn:mpeg:dash:schema:mpd:2011",
    }

    @staticmethod
    def parse(mpd_content: bytes, mpd_url: str) -> List[DashAdaptationSet]:
        """
        Parse the adaptation sets of an MPD manifest.

        Only the first period is read; multi-period manifests are not supported.
        """
        try:
            root = etree.fromstring(mpd_content)
        except etree.XMLSyntaxError as exc:
            raise DecodeError(str(exc), content=mpd_content, url=mpd_url) from exc

        periods = root.findall("./mpd:Period", namespaces=DashParser.DASH_NS)
        if not periods:
            raise DecodeError("manifest has no period", content=mpd_content, url=mpd_url)
        if len(periods) > 1:
            logger.warning(
                "Manifest %s has %d periods, only the first one is used", mpd_url, len(periods)
            )
        period = periods[0]

        manifest_base = DashParser._apply_base_url(base_dir(mpd_url), root)
        period_base = DashParser._apply_base_url(manifest_base, period)

        adaptation_sets: List[DashAdaptationSet] = []
        for adaptation_set in period.findall("./mpd:AdaptationSet", namespaces=DashParser.DASH_NS):
            adaptation_base = DashParser._apply_base_url(period_base, adaptation_set)
            representations = [
                DashParser._parse_representation(adaptation_set, representation, adaptation_base)
                for representation in adaptation_set.findall(
                    "./mpd:Representation", namespaces=DashParser.DASH_NS
                )
            ]
            try:
                segment_template = DashParser._parse_segment_template(adaptation_set)
            except DecodeError as exc:
                raise exc.with_source(mpd_content, mpd_url) from exc

            adaptation_sets.append(
                DashAdaptationSet(
                    max_width=DashParser._maybe_int(adaptation_set.get("maxWidth")),
                    max_height=DashParser._maybe_int(adaptation_set.get("maxHeight")),
                    segment_template=segment_template,
                    representations=representations,
                )
            )

        return adaptation_sets

    @staticmethod
    def parse_variants(
        mpd_content: bytes, mpd_url: str
    ) -> Tuple[List[VariantData], List[VariantData]]:
        """
        Parse an MPD manifest into video and audio variants.

        Returns:
            ``(video, audio)`` variant lists
        """
        video: List[VariantData] = []
        audio: List[VariantData] = []

        for adaptation_set in DashParser.parse(mpd_content, mpd_url):
            try:
                if adaptation_set.segment_template is None:
                    raise DecodeError("dash segment template missing")
                variants = DashParser.expand_representations(
                    adaptation_set.segment_template, adaptation_set.representations
                )
            except DecodeError as exc:
                raise exc.with_source(mpd_content, mpd_url) from exc

            if adaptation_set.is_video:
                video.extend(variants)
            else:
                audio.extend(variants)

        logger.info(
            "Found %d video and %d audio DASH variants in %s", len(video), len(audio), mpd_url
        )
        return video, audio

    @staticmethod
    def expand_representations(
        segment_template: DashSegmentTemplate,
        representations: List[DashRepresentation],
    ) -> List[VariantData]:
        """
        Build a variant per representation.

        Raises:
            DecodeError: A field needed to address segments is missing.
        """
        init_template = DashParser._require(segment_template.initialization, "initialization url")
        media_template = DashParser._require(segment_template.media, "media url")
        start_number = DashParser._require(segment_template.start_number, "start number")
        timeline = DashParser._require(segment_template.timeline, "segment timeline")
        durations = DashParser.expand_timeline(timeline)

        variants: List[VariantData] = []
        for representation in representations:
            rep_id = DashParser._require(representation.id, "representation id")
            if not representation.base_urls:
                raise DecodeError(f"dash base url missing for representation {rep_id}")
            bandwidth = representation.bandwidth or 0

            variants.append(
                VariantData(
                    resolution=Resolution(
                        width=representation.width or 0,
                        height=representation.height or 0,
                    ),
                    bandwidth=bandwidth,
                    fps=DashParser.parse_frame_rate(representation.frame_rate),
                    codecs=representation.codecs or "",
                    address=DashAddress(
                        representation_id=rep_id,
                        base_url=representation.base_urls[0],
                        init_template=init_template,
                        media_template=media_template,
                        start_number=start_number,
                        segment_durations=list(durations),
                        bandwidth=bandwidth,
                    ),
                )
            )

        return variants

    @staticmethod
    def expand_timeline(timeline: List[DashTimelineEntry]) -> List[int]:
        """Flatten ``(duration, repeat)`` pairs into one duration per segment."""
        durations: List[int] = []
        for entry in timeline:
            durations.extend([entry.duration] * (entry.repeat + 1))
        return durations

    @staticmethod
    def parse_frame_rate(value: Optional[str]) -> float:
        """Parse ``"30"``, ``"29.97"`` or ``"30000/1001"``; anything else yields 0."""
        if not value:
            return 0.0
        if "/" in value:
            numerator, denominator = value.split("/", 1)
            left = DashParser._safe_float(numerator)
            right = DashParser._safe_float(denominator)
            if left != 0 and right != 0:
                return left / right
            return 0.0
        return DashParser._safe_float(value)

    # ------------------------------------------------------------------
    # Helper utilities
    # ------------------------------------------------------------------

    @staticmethod
    def _require(value, name: str):
        if value is None:
            raise DecodeError(f"dash {name} missing")
        return value

    @staticmethod
    def _get_child(element: Optional[etree._Element], tag: str) -> Optional[etree._Element]:
        if element is None:
            return None
        return element.find(f"./mpd:{tag}", namespaces=DashParser.DASH_NS)

    @staticmethod
    def _apply_base_url(current_base: str, element: Optional[etree._Element]) -> str:
        if element is None:
            return current_base
        base_elem = DashParser._get_child(element, "BaseURL")
        if base_elem is None or not base_elem.text:
            return current_base
        return resolve_url(current_base, base_elem.text.strip())

    @staticmethod
    def _parse_representation(
        adaptation_set: etree._Element,
        representation: etree._Element,
        adaptation_base: str,
    ) -> DashRepresentation:
        base_urls = [
            resolve_url(adaptation_base, elem.text.strip())
            for elem in representation.findall("./mpd:BaseURL", namespaces=DashParser.DASH_NS)
            if elem.text and elem.text.strip()
        ]
        return DashRepresentation(
            id=representation.get("id") or None,
            base_urls=base_urls,
            bandwidth=DashParser._maybe_int(representation.get("bandwidth")),
            codecs=representation.get("codecs") or adaptation_set.get("codecs"),
            width=DashParser._maybe_int(representation.get("width")),
            height=DashParser._maybe_int(representation.get("height")),
            frame_rate=representation.get("frameRate") or adaptation_set.get("frameRate"),
        )

    @staticmethod
    def _parse_segment_template(adaptation_set: etree._Element) -> Optional[DashSegmentTemplate]:
        template = DashParser._get_child(adaptation_set, "SegmentTemplate")
        if template is None:
            return None

        timeline: Optional[List[DashTimelineEntry]] = None
        timeline_elem = DashParser._get_child(template, "SegmentTimeline")
        if timeline_elem is not None:
            timeline = []
            for s in timeline_elem.findall("./mpd:S", namespaces=DashParser.DASH_NS):
                duration = DashParser._maybe_int(s.get("d"))
                if duration is None:
                    raise DecodeError("dash timeline entry without duration")
                repeat = DashParser._maybe_int(s.get("r"))
                if repeat is None:
                    if s.get("r") is not None:
                        raise DecodeError("dash timeline entry with invalid repeat")
                    repeat = 0
                if repeat < 0:
                    # Open-ended repeats only make sense for live manifests.
                    logger.warning("Ignoring negative timeline repeat count %d", repeat)
                    repeat = 0
                timeline.append(DashTimelineEntry(duration=duration, repeat=repeat))

        return DashSegmentTemplate(
            initialization=template.get("initialization"),
            media=template.get("media"),
            start_number=DashParser._maybe_int(template.get("startNumber")),
            timeline=timeline,
        )

    @staticmethod
    def _maybe_int(value: Optional[str]) -> Optional[int]:
        if value in (None, ""):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @staticmethod
    def _safe_float(value: str) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0.0
