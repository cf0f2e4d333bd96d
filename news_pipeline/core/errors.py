"""
Exception taxonomy for the aggregation pipeline.

Only ``PipelineFailure`` (and ``AggregationExhausted`` when emergency
content is switched off) ever reaches callers of the orchestrator.
``SourceError`` is contained by the per-adapter guards.
"""

from typing import Optional


class NewsPipelineError(Exception):
    """Base class for all pipeline errors."""


class SourceError(NewsPipelineError):
    """A single provider request failed."""

    def __init__(self, provider: str, message: str = "",
                 http_status: Optional[int] = None,
                 network_error: Optional[BaseException] = None):
        self.provider = provider
        self.http_status = http_status
        self.network_error = network_error
        if not message:
            if http_status is not None:
                message = f"HTTP {http_status}"
            elif network_error is not None:
                message = f"{type(network_error).__name__}: {network_error}"
            else:
                message = "request failed"
        self.message = message
        super().__init__(f"{provider}: {message}")


class AggregationExhausted(NewsPipelineError):
    """Both source tiers yielded no articles and emergency content is disabled."""

    def __init__(self, query: str, region: str):
        self.query = query
        self.region = region
        super().__init__(f"No articles available for {query!r} in {region}")


class PipelineFailure(NewsPipelineError):
    """Unexpected failure with no cached result to fall back on."""

    def __init__(self, query: str, region: str, cause: BaseException):
        self.query = query
        self.region = region
        self.cause = cause
        super().__init__(f"Aggregation failed for {query!r} in {region}: {cause}")
