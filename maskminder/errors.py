"""Exceptions raised by the scheduling core.

Store failures (``aiosqlite.Error``) are not wrapped: they propagate to the
caller unchanged and are never retried.
"""


class MaskMinderError(Exception):
    """Base class for all MaskMinder errors."""


class NotFoundError(MaskMinderError):
    """A component or action id did not resolve in the store.

    This means the caller is working from stale data; retrying will not help.
    """

    def __init__(self, kind: str, record_id: int):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind.capitalize()} {record_id} not found")


class ValidationError(MaskMinderError):
    """Input was rejected before any write happened."""
