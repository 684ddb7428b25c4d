"""
Error taxonomy for Music Folio.

`status` is the HTTP status the transcription endpoint answers with.
"""


class MusicFolioError(Exception):
    """Base class for all Music Folio errors."""

    status = 500


class ConfigurationError(MusicFolioError):
    """Required configuration (e.g. the gateway credential) is missing."""


class ValidationError(MusicFolioError):
    """Rejected input: wrong file type, malformed request body, bad key."""


class GatewayError(MusicFolioError):
    """The AI gateway answered with a non-success HTTP status."""

    def __init__(self, upstream_status: int, message: str = None):
        self.upstream_status = upstream_status
        super().__init__(message or f"AI gateway error: {upstream_status}")


class GatewayRateLimited(GatewayError):
    status = 429

    def __init__(self, message: str = "Rate limit exceeded. Please try again later."):
        super().__init__(429, message)


class GatewayPaymentRequired(GatewayError):
    status = 402

    def __init__(self, message: str = "Payment required. Please add credits."):
        super().__init__(402, message)


def gateway_error_for_status(status: int) -> GatewayError:
    """Map an upstream HTTP status to the matching gateway error."""
    if status == 429:
        return GatewayRateLimited()
    if status == 402:
        return GatewayPaymentRequired()
    return GatewayError(status)
