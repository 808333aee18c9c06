"""Custom exceptions for Jupiter core services."""


class JupiterHTTPError(RuntimeError):
    """Raised when the Jupiter HTTP API returns a non-success status."""

    status_code = 502

    def __init__(self, upstream_status: int, body: str | None = None) -> None:
        super().__init__(f"Jupiter API error: {upstream_status} {body or ''}".rstrip())
        self.upstream_status = upstream_status
        self.body = body


class JupiterResponseError(RuntimeError):
    """Raised when Jupiter answers 2xx but the payload is unusable."""

    status_code = 502
