"""Error taxonomy shared by the adapters, the aggregator and the HTTP layer."""
from __future__ import annotations

from typing import Literal

FailureReason = Literal["network", "timeout", "parse", "upstream_4xx", "upstream_5xx"]


class TakedownError(Exception):
    """Base class for errors the HTTP layer knows how to render."""

    status_code = 500
    kind = "InternalFault"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(TakedownError):
    status_code = 400
    kind = "InvalidInput"


class NoAddressResolved(TakedownError):
    """No DNS provider returned an address for the hostname."""

    status_code = 400
    kind = "NoAddressResolved"

    def __init__(self, hostname: str):
        super().__init__(f"Could not resolve an IP address for {hostname}")
        self.hostname = hostname


class UpstreamUnavailable(TakedownError):
    """An external data source failed. Adapters recover from this locally."""

    status_code = 500
    kind = "UpstreamUnavailable"


class FetchFailure(UpstreamUnavailable):
    """An adapter request failed, with the reason and any captured response."""

    def __init__(
        self,
        source: str,
        reason: FailureReason,
        message: str = "",
        *,
        status_code: int | None = None,
        body: str | None = None,
    ):
        detail = message or reason
        if status_code is not None:
            detail = f"{detail} (HTTP {status_code})"
        super().__init__(f"{source}: {detail}")
        self.source = source
        self.reason = reason
        self.upstream_status = status_code
        self.body = body

    @property
    def retryable(self) -> bool:
        return self.reason == "upstream_5xx"


class UpstreamModelError(UpstreamUnavailable):
    """The text-completion model failed or returned something unusable."""


class InternalFault(TakedownError):
    status_code = 500
    kind = "InternalFault"
