class AerogardenError(Exception):
    """Base error of the Aerogarden client."""


class AerogardenTransportError(AerogardenError):
    """Connection failure, timeout or HTTP error status."""

    def __init__(self, message, path=None, status=None):
        super().__init__(message)
        self.path = path
        self.status = status


class AerogardenDecodeError(AerogardenError):
    """Malformed or empty response body."""

    def __init__(self, message, path=None, body=None):
        super().__init__(message)
        self.path = path
        self.body = body


class AerogardenConfigError(AerogardenError):
    """Missing or invalid device / user identifiers."""
