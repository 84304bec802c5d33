"""In-memory fetcher used by the tests."""

from typing import Dict, List

from variantstream.errors import TransportError


class FakeFetcher:
    """Serves canned responses and records every requested URL."""

    def __init__(self, responses: Dict[str, bytes]):
        self.responses = dict(responses)
        self.requests: List[str] = []

    async def download(self, url: str) -> bytes:
        self.requests.append(url)
        if url not in self.responses:
            raise TransportError(url, "HTTP 404: Not Found")
        return self.responses[url]
