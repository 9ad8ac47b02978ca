"""
error family for the ranking server.

not-found is deliberately absent: a guess outside the corpus gets a
synthetic rank, not an exception.
"""


class ContextoError(Exception):
    """base class for everything raised by this package."""


class CorpusFormatError(ContextoError):
    """corpus file is missing, empty or malformed. fatal at startup."""


class DimensionMismatchError(ContextoError):
    """query vector length differs from the corpus dimension."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Dimension mismatch: expected {expected}, got {actual}")


class ProviderError(ContextoError):
    """embedding provider call failed (rate limit, network, auth)."""


class EmptyGuessError(ContextoError, ValueError):
    """guess was blank after trimming."""

    def __init__(self):
        super().__init__("No word")
