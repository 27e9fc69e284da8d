class ServiceError(Exception):
    """Base exception for service-level errors."""


class TransportError(ServiceError):
    """The key-value store is unreachable or replied with a protocol failure."""


class DecodeError(ServiceError):
    """A stored value is not valid JSON or does not match the payload schema."""


class ConsistencyFault(ServiceError):
    """An operation broke a postcondition that prior steps guaranteed."""
