class AiToolError(Exception):
    """Base class for connector and instance errors."""


class NotFoundError(AiToolError, LookupError):
    """Raised for an unknown connector, instance id or missing bound instance."""


class PersistenceError(AiToolError):
    """Raised when an instance record cannot be written."""


class ValidationError(PersistenceError, ValueError):
    """Raised when a required instance field is missing at store time."""


class CapabilityMismatchError(AiToolError):
    """Raised when a caller relies on a capability the connector does not offer."""


class ConnectorError(AiToolError, RuntimeError):
    """Raised when a connector request fails."""
