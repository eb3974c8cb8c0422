"""Exceptions raised by the put step."""


class ResourceError(Exception):
    """Base class for every failure surfaced to Concourse."""


class ValidationError(ResourceError):
    """Unsupported parameter value, e.g. an unknown status."""


class StateReadError(ResourceError):
    """A state or override file is missing or unreadable."""


class DecodeError(ResourceError):
    """A JSON document does not have the expected shape."""


class RemoteError(ResourceError):
    """The remote service rejected or failed a call."""
