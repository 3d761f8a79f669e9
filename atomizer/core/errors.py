from __future__ import annotations


class AtomizerError(Exception):
    """Base class for errors raised by the atomizer core."""


class ParseError(AtomizerError):
    pass


class StoreLookupError(AtomizerError, LookupError):
    """A round trip to the backing store failed."""


class NotFoundError(AtomizerError):
    """A referenced id is absent where its presence is assumed."""


class DimensionMismatchError(AtomizerError, ValueError):
    def __init__(self, expected: int, actual: int):
        super().__init__(f"Vector length mismatch {expected} vs {actual}")
        self.expected = expected
        self.actual = actual


class CycleDetectedError(AtomizerError):
    def __init__(self, context_id: str, path):
        chain = " -> ".join(list(path) + [context_id])
        super().__init__(f"Cycle detected in context graph: {chain}")
        self.context_id = context_id


class JobError(AtomizerError):
    pass


class CancellationError(AtomizerError):
    pass
