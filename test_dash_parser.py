#!/usr/bin/env python3
"""Test DASH manifest parsing with SegmentTemplate/SegmentTimeline addressing."""

import sys

import pytest

from variantstream.dash_parser import (
    DashParser,
    DashRepresentation,
    DashSegmentTemplate,
    DashTimelineEntry,
)
from variantstream.errors import DecodeError
from variantstream.models import DashAddress, Resolution, StreamFormat

MPD_URL = "https://cdn.example.com/manifests/stream.mpd"

SAMPLE_MPD = b"""<?xml version="1.0" encoding="utf-8"?>
<MPD xmlns="urn:mpeg:dash:schema:mpd:2011" type="static" mediaPresentationDuration="PT0H0M8.000S">
  <Period id="0">
    <AdaptationSet mimeType="video/mp4" maxWidth="1920" maxHeight="1080">
      <SegmentTemplate timescale="1000" initialization="$RepresentationID$/init.mp4"
                       media="$RepresentationID$/seg-$Number$.m4s" startNumber="1">
        <SegmentTimeline>
          <S t="0" d="10" r="2"/>
          <S d="20"/>
        </SegmentTimeline>
      </SegmentTemplate>
      <Representation id="v1080" bandwidth="5000000" width="1920" height="1080"
                      codecs="avc1.640028" frameRate="24000/1001">
        <BaseURL>https://cdn.example.com/video/</BaseURL>
      </Representation>
      <Representation id="v720" bandwidth="3000000" width="1280" height="720"
                      codecs="avc1.64001f" frameRate="25">
        <BaseURL>https://cdn.example.com/video/</BaseURL>
      </Representation>
    </AdaptationSet>
    <AdaptationSet mimeType="audio/mp4" lang="ja">
      <SegmentTemplate timescale="1000" initialization="$RepresentationID$/init.mp4"
                       media="$RepresentationID$/seg-$Number$.m4s" startNumber="5">
        <SegmentTimeline>
          <S t="0" d="4000" r="1"/>
        </SegmentTimeline>
      </SegmentTemplate>
      <Representation id="a128" bandwidth="128000" codecs="mp4a.40.2">
        <BaseURL>audio/</BaseURL>
      </Representation>
    </AdaptationSet>
  </Period>
</MPD>
"""


def _template(**overrides) -> DashSegmentTemplate:
    values = dict(
        initialization="init.mp4",
        media="$Number$.m4s",
        start_number=1,
        timeline=[DashTimelineEntry(duration=10)],
    )
    values.update(overrides)
    return DashSegmentTemplate(**values)


def _representation(**overrides) -> DashRepresentation:
    values = dict(
        id="r1",
        base_urls=["https://cdn.example.com/"],
        bandwidth=1000,
        codecs="avc1",
        width=640,
        height=360,
        frame_rate=None,
    )
    values.update(overrides)
    return DashRepresentation(**values)


def test_classification() -> None:
    adaptation_sets = DashParser.parse(SAMPLE_MPD, MPD_URL)
    assert [a.is_video for a in adaptation_sets] == [True, False]


def test_parse_variants() -> None:
    video, audio = DashParser.parse_variants(SAMPLE_MPD, MPD_URL)
    assert [v.address.representation_id for v in video] == ["v1080", "v720"]
    assert [a.address.representation_id for a in audio] == ["a128"]

    best = video[0]
    assert best.format is StreamFormat.DASH
    assert best.hls_master_url is None
    assert best.resolution == Resolution(1920, 1080)
    assert best.bandwidth == 5000000
    assert best.fps == pytest.approx(24000 / 1001)
    assert best.codecs == "avc1.640028"
    assert best.address == DashAddress(
        representation_id="v1080",
        base_url="https://cdn.example.com/video/",
        init_template="$RepresentationID$/init.mp4",
        media_template="$RepresentationID$/seg-$Number$.m4s",
        start_number=1,
        segment_durations=[10, 10, 10, 20],
        bandwidth=5000000,
    )
    assert video[1].fps == 25

    track = audio[0]
    assert track.resolution == Resolution(0, 0)
    assert track.address.base_url == "https://cdn.example.com/manifests/audio/"
    assert track.address.start_number == 5
    assert track.address.segment_durations == [4000, 4000]


def test_timeline_expansion() -> None:
    timeline = [DashTimelineEntry(duration=10, repeat=2), DashTimelineEntry(duration=20, repeat=0)]
    assert DashParser.expand_timeline(timeline) == [10, 10, 10, 20]


@pytest.mark.parametrize(
    "value, expected",
    [
        ("30000/1001", 30000 / 1001),
        ("0/1001", 0.0),
        ("30/0", 0.0),
        ("29.97", 29.97),
        ("abc", 0.0),
        ("", 0.0),
        (None, 0.0),
    ],
)
def test_frame_rate(value, expected) -> None:
    assert DashParser.parse_frame_rate(value) == pytest.approx(expected)


@pytest.mark.parametrize(
    "field",
    ["initialization", "media", "start_number", "timeline"],
)
def test_missing_template_field_is_fatal(field) -> None:
    with pytest.raises(DecodeError):
        DashParser.expand_representations(_template(**{field: None}), [_representation()])


def test_missing_representation_id_is_fatal() -> None:
    with pytest.raises(DecodeError):
        DashParser.expand_representations(_template(), [_representation(), _representation(id=None)])


def test_missing_base_url_is_fatal() -> None:
    with pytest.raises(DecodeError):
        DashParser.expand_representations(_template(), [_representation(base_urls=[])])


def test_missing_start_number_in_manifest() -> None:
    content = SAMPLE_MPD.replace(b' startNumber="5"', b"")
    with pytest.raises(DecodeError) as info:
        DashParser.parse_variants(content, MPD_URL)
    assert info.value.url == MPD_URL
    assert info.value.content == content


def test_missing_segment_template_in_manifest() -> None:
    content = b"""<MPD xmlns="urn:mpeg:dash:schema:mpd:2011"><Period>
      <AdaptationSet maxWidth="640"><Representation id="x"><BaseURL>x/</BaseURL></Representation></AdaptationSet>
    </Period></MPD>"""
    with pytest.raises(DecodeError) as info:
        DashParser.parse_variants(content, MPD_URL)
    assert info.value.url == MPD_URL


def _single_timeline_mpd(s_element: bytes) -> bytes:
    return (
        b'<MPD xmlns="urn:mpeg:dash:schema:mpd:2011"><Period><AdaptationSet maxWidth="640">'
        b'<SegmentTemplate initialization="init.mp4" media="$Number$.m4s" startNumber="1">'
        b"<SegmentTimeline>" + s_element + b"</SegmentTimeline></SegmentTemplate>"
        b'<Representation id="v"><BaseURL>https://cdn.example.com/</BaseURL></Representation>'
        b"</AdaptationSet></Period></MPD>"
    )


def test_negative_repeat_is_clamped(caplog) -> None:
    content = _single_timeline_mpd(b'<S d="10" r="-1"/><S d="20"/>')
    with caplog.at_level("WARNING", logger="variantstream.dash_parser"):
        video, _ = DashParser.parse_variants(content, MPD_URL)

    assert video[0].address.segment_durations == [10, 20]
    assert "negative timeline repeat" in caplog.text


def test_invalid_repeat_is_fatal() -> None:
    content = _single_timeline_mpd(b'<S d="10" r="x"/>')
    with pytest.raises(DecodeError) as info:
        DashParser.parse_variants(content, MPD_URL)
    assert info.value.url == MPD_URL
    assert info.value.content == content


def test_malformed_xml() -> None:
    content = b"<MPD><Period>"
    with pytest.raises(DecodeError) as info:
        DashParser.parse(content, MPD_URL)
    assert info.value.content == content
    assert info.value.url == MPD_URL


def test_manifest_without_period() -> None:
    with pytest.raises(DecodeError):
        DashParser.parse(b'<MPD xmlns="urn:mpeg:dash:schema:mpd:2011"/>', MPD_URL)


def test_only_first_period_is_used() -> None:
    second_period = (
        b'<Period id="1"><AdaptationSet maxWidth="640"><SegmentTemplate/></AdaptationSet></Period></MPD>'
    )
    content = SAMPLE_MPD.replace(b"</MPD>", second_period)
    video, audio = DashParser.parse_variants(content, MPD_URL)
    assert len(video) == 2
    assert len(audio) == 1


if __name__ == "__main__":
    sys.exit(pytest.main([__file__]))
