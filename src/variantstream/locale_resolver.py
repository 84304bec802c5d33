"""Pick the raw stream matching a hardsub locale."""

from __future__ import annotations

import logging
from typing import List, Optional

from .errors import InternalError, NotFoundError
from .models import NO_HARDSUB_LOCALES, Locale, RawStreamSet, StreamFormat

logger = logging.getLogger(__name__)


def list_hardsub_locales(raw_streams: RawStreamSet) -> List[Locale]:
    """Return every hardsub locale a stream set offers."""
    return list(raw_streams.keys())


def resolve_stream_url(
    raw_streams: RawStreamSet,
    hardsub: Optional[Locale],
    fmt: StreamFormat,
) -> str:
    """
    Return the manifest URL of ``fmt`` for the requested hardsub locale.

    Without a locale, the unsubtitled stream is used; upstream keys it either
    under ``""`` or ``":"`` and the empty locale is checked first.

    Raises:
        NotFoundError: The locale does not exist or has no ``fmt`` manifest.
        InternalError: No locale was given and no unsubtitled stream exists.
    """
    if hardsub is not None:
        descriptor = raw_streams.get(hardsub)
        if descriptor is None:
            raise NotFoundError(f"no stream with hardsub locale {hardsub}")
        url = descriptor.url_for(fmt)
        if not url:
            raise NotFoundError("no stream available")
        return url

    found = False
    for locale in NO_HARDSUB_LOCALES:
        descriptor = raw_streams.get(locale)
        if descriptor is None:
            continue
        found = True
        url = descriptor.url_for(fmt)
        if url:
            logger.debug("Using unsubtitled %s stream under locale %r", fmt.value, locale)
            return url

    if found:
        raise NotFoundError("no stream available")
    raise InternalError("could not find supported stream")
