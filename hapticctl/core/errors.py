"""Domain-specific errors for hapticctl."""


class HapticctlError(Exception):
    """Base error for hapticctl."""


class ConfigLoadError(HapticctlError):
    """Raised when the config file cannot be read."""


class ConfigValidationError(HapticctlError):
    """Raised when the config file does not conform to schema."""


class DecodeError(HapticctlError):
    """Raised when an incoming frame cannot be parsed."""


class ServerError(HapticctlError):
    """Raised when the server answers a request with an Error frame."""

    def __init__(self, message: str, error_code: int | None = None) -> None:
        super().__init__(message)
        self.error_code = error_code


class DeviceError(HapticctlError):
    """Base device error."""


class DeviceNotFoundError(DeviceError):
    """Raised when a device index is not in the registry."""


class CapabilityUnsupportedError(DeviceError):
    """Raised when a device lacks the actuator a command needs."""


class TransportError(HapticctlError):
    """Base transport error."""


class NotConnectedError(TransportError):
    """Raised when a command is sent without an open connection."""


class TransportConnectError(TransportError):
    """Raised on socket connect failures."""


class TransportSendError(TransportError):
    """Raised when writing a frame to the socket fails."""


class ConnectionLostError(TransportError):
    """Raised for pending requests when the socket closes before replying."""


class TransportTimeoutError(TransportError):
    """Base timeout error."""


class ConnectionTimeoutError(TransportTimeoutError):
    """Raised when the connect sequence exceeds its time budget."""


class RequestTimeoutError(TransportTimeoutError):
    """Raised when a reply does not arrive in time."""
