"""Exception hierarchy raised by variantstream."""

from __future__ import annotations

from typing import Optional


class StreamError(RuntimeError):
    """Base class for every error raised while resolving a stream."""


class NotFoundError(StreamError):
    """Raised when the requested locale or stream format is not available."""


class InternalError(StreamError):
    """Raised when an invariant is violated (e.g. a variant used with the wrong format)."""


class TransportError(StreamError):
    """Raised when fetching a URL fails."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{message} ({url})")
        self.url = url
        self.message = message


class DecodeError(StreamError):
    """Raised when manifest or segment bytes cannot be decoded.

    The raw bytes are kept so the caller can inspect what upstream returned.
    ``url`` is ``None`` when the error was raised somewhere the source URL is
    not known (segment decryption); see :meth:`with_source`.
    """

    def __init__(
        self,
        message: str,
        content: Optional[bytes] = None,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message if url is None else f"{message} ({url})")
        self.message = message
        self.content = content
        self.url = url

    def with_source(self, content: Optional[bytes], url: Optional[str]) -> "DecodeError":
        """Return a copy carrying ``content``/``url`` where this error has none."""
        return DecodeError(
            self.message,
            content=self.content if self.content is not None else content,
            url=self.url if self.url is not None else url,
        )
