"""Error taxonomy shared by the discovery pipeline and the HTTP layer."""


class SourceFinderError(Exception):
    """Base class for all expected failures."""


class ValidationError(SourceFinderError, ValueError):
    """Caller input was rejected before any network call was made."""


class ProviderError(SourceFinderError):
    """A data provider call failed (timeout, network error, bad response)."""

    def __init__(self, provider: str, message: str, timed_out: bool = False):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.timed_out = timed_out


class RenderError(SourceFinderError):
    """A single citation could not be rendered."""
