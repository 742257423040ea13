"""
Errors raised by the lock status gateway.

Every failure leaving the gateway is one of these; the HTTP layer maps
`status_code` and `kind` onto the error response.
"""


class GatewayError(Exception):
    """Base class for gateway failures."""

    kind = "gateway_error"
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(GatewayError):
    """Malformed or missing token identifier. Never reaches the RPC."""

    kind = "validation_error"
    status_code = 400


class UpstreamUnavailable(GatewayError):
    """The RPC endpoint could not be reached. Safe for the caller to retry."""

    kind = "upstream_unavailable"
    status_code = 502


class UpstreamTimeout(GatewayError):
    """The contract call did not complete before the deadline."""

    kind = "upstream_timeout"
    status_code = 504


class UpstreamCallError(GatewayError):
    """The call reached the node but reverted or returned an RPC error."""

    kind = "upstream_call_error"
    status_code = 502


class ServiceNotConfigured(GatewayError):
    """No contract is configured, so lock queries cannot be served."""

    kind = "not_configured"
    status_code = 503
