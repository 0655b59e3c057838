"""Exceptions module."""


class AquarisError(Exception):
    """Base class for controller errors."""


class TransportUnavailable(AquarisError):
    """Raised when the Bluetooth capability is missing."""


class OperationRejected(AquarisError):
    """Raised when a state transition is not allowed from the current status."""


class DeviceCommandFailed(AquarisError):
    """Raised when a transport call fails."""


class NotConnected(AquarisError):
    """Raised when a device command is attempted without an active link."""


class ConfigurationError(AquarisError):
    """Raised when the runtime configuration is invalid."""
