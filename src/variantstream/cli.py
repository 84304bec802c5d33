"""Command-line interface for variantstream."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import click

from .downloader import SegmentDownloader
from .errors import StreamError
from .locale_resolver import list_hardsub_locales
from .models import FetchConfig, RawStreamDescriptor, RawStreamSet, StreamFormat, VariantData
from .stream import Stream

logger = logging.getLogger(__name__)


def load_stream_set(path: Path) -> RawStreamSet:
    """Load a ``{"<locale>": {"hls": url, "dash": url}}`` JSON file."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise click.BadParameter(f"cannot read stream file: {exc}") from exc
    if not isinstance(data, dict):
        raise click.BadParameter("stream file must contain a JSON object")
    return {locale: RawStreamDescriptor.from_dict(entry or {}) for locale, entry in data.items()}


def parse_headers(header: tuple) -> Dict[str, str]:
    headers = {}
    for header_entry in header:
        if ":" not in header_entry:
            raise click.BadParameter("Headers must be in the form Name:Value")
        name, value = header_entry.split(":", 1)
        headers[name.strip()] = value.strip()
    return headers


def describe(index: int, variant: VariantData) -> str:
    parts = [f"[{index}] {variant.format.value}", f"{variant.bandwidth} bps"]
    if variant.resolution.width or variant.resolution.height:
        parts.append(str(variant.resolution))
    if variant.fps:
        parts.append(f"{variant.fps:.3f} fps")
    if variant.codecs:
        parts.append(variant.codecs)
    return "  ".join(parts)


async def _select_variants(
    stream: Stream, fmt: StreamFormat, hardsub: Optional[str], audio: bool
) -> List[VariantData]:
    if fmt is StreamFormat.HLS:
        return await stream.hls_variants(hardsub)
    video_variants, audio_variants = await stream.dash_variants(hardsub)
    return audio_variants if audio else video_variants


async def download_variant(
    stream: Stream,
    output: Path,
    fmt: StreamFormat,
    hardsub: Optional[str] = None,
    variant_index: Optional[int] = None,
    audio: bool = False,
) -> Tuple[int, int]:
    """
    Write every decrypted segment of one variant to ``output``, in playback order.

    Without ``variant_index`` the variant with the highest bandwidth is used.

    Returns:
        ``(segment count, bytes written)``
    """
    candidates = await _select_variants(stream, fmt, hardsub, audio)
    if not candidates:
        raise click.ClickException("stream has no variants")

    if variant_index is None:
        variant = max(candidates, key=lambda v: v.bandwidth)
    elif 0 <= variant_index < len(candidates):
        variant = candidates[variant_index]
    else:
        raise click.BadParameter(f"variant index must be between 0 and {len(candidates) - 1}")

    segments = await stream.segments(variant)
    logger.info("Downloading %d segments to %s", len(segments), output)

    output.parent.mkdir(parents=True, exist_ok=True)
    written = 0
    with output.open("wb") as sink:
        for segment in segments:
            written += await stream.write_segment(segment, sink)
    return len(segments), written


format_option = click.option(
    "--format",
    "fmt",
    type=click.Choice([f.value for f in StreamFormat]),
    default=StreamFormat.HLS.value,
    show_default=True,
    help="Manifest family to resolve",
)
hardsub_option = click.option(
    "--hardsub", default=None, help="Hardsub locale (default: stream without hardsub)"
)
header_option = click.option("--header", multiple=True, help="Additional HTTP header as Name:Value")


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """Resolve HLS / DASH streams into decrypted segments."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@cli.command()
@click.argument("streams_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def locales(streams_file):
    """List the hardsub locales of a stream file."""
    stream_set = load_stream_set(streams_file)
    for locale in list_hardsub_locales(stream_set):
        click.echo(repr(locale) if locale in ("", ":") else locale)


@cli.command()
@click.argument("streams_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@format_option
@hardsub_option
@header_option
def variants(streams_file, fmt, hardsub, header):
    """List the variants of a stream."""
    stream_set = load_stream_set(streams_file)
    config = FetchConfig(headers=parse_headers(header))

    async def _run():
        async with SegmentDownloader(config=config) as downloader:
            stream = Stream(stream_set, downloader)
            if StreamFormat(fmt) is StreamFormat.HLS:
                for index, variant in enumerate(await stream.hls_variants(hardsub)):
                    click.echo(describe(index, variant))
                return

            video, audio = await stream.dash_variants(hardsub)
            click.echo("Video:")
            for index, variant in enumerate(video):
                click.echo(f"  {describe(index, variant)}")
            click.echo("Audio:")
            for index, variant in enumerate(audio):
                click.echo(f"  {describe(index, variant)}")

    try:
        asyncio.run(_run())
    except StreamError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("streams_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", "-o", required=True, type=click.Path(dir_okay=False, path_type=Path))
@format_option
@hardsub_option
@header_option
@click.option("--variant", "variant_index", type=int, default=None, help="Variant index (default: highest bandwidth)")
@click.option("--audio", is_flag=True, help="Download the DASH audio variant instead of video")
def download(streams_file, output, fmt, hardsub, header, variant_index, audio):
    """Download and decrypt every segment of a variant into one file."""
    stream_set = load_stream_set(streams_file)
    config = FetchConfig(headers=parse_headers(header))

    async def _run():
        async with SegmentDownloader(config=config) as downloader:
            stream = Stream(stream_set, downloader)
            count, written = await download_variant(
                stream, output, StreamFormat(fmt), hardsub, variant_index, audio
            )
            click.echo(f"Wrote {count} segments ({written} bytes) to {output}")

    try:
        asyncio.run(_run())
    except StreamError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
