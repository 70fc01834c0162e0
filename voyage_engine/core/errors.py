class UpstreamAPIError(RuntimeError):
    """Raised when an upstream provider call fails (network, 4xx/5xx, malformed response)."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class AttractionSourcesUnavailable(RuntimeError):
    """Raised when every attraction source failed and nothing is cached."""
