"""Exceptions raised by the cachier controller."""


class CachierError(Exception):
    """Base class for cachier errors."""


class InvalidKeyError(CachierError):
    """A work queue key that is not of the form ``namespace/name``."""

    def __init__(self, key: str):
        super().__init__(f"unexpected key format: {key!r}")
        self.key = key


class DecodeError(CachierError):
    """A stored object could not be decoded into the expected shape."""


class InvalidKindError(CachierError):
    """A resource argument that is not of the form ``Kind.version.group``."""
