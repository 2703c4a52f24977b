"""Exception hierarchy for vidshelf.

Only :class:`DestinationRootError` is meant to escape a batch run. The other
errors are raised by collaborators (providers, store, filesystem) and caught by
the resolver or the executor, which log them and carry on with the next file.
"""


class VidshelfError(RuntimeError):
    """Base error type."""


class ProviderError(VidshelfError):
    """Network failure or malformed response from a metadata provider."""


class StoreError(VidshelfError):
    """Local metadata store read/write problem."""


class MoveError(VidshelfError):
    """A single file could not be moved to its planned destination."""


class DestinationRootError(VidshelfError):
    """A library root directory cannot be created or written to."""

    def __init__(self, root: object, reason: str) -> None:
        """Initialize the error with the offending root and a reason."""
        super().__init__(f"Destination root is not usable: {root} ({reason})")
        self.root = root
        self.reason = reason
