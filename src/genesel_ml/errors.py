"""
Error taxonomy for GeneSel-ML.

All errors signal a caller contract violation. They are raised synchronously
at the point of detection and are never retried.
"""


class GeneSelError(ValueError):
    """Base class for aggregation and comparison errors."""

    pass


class EmptyInputError(GeneSelError):
    """A reduction received zero data points for some key."""

    pass


class MethodNotFoundError(GeneSelError, LookupError):
    """Lookup by method (and importance kind) found nothing."""

    def __init__(self, method: str, kind: str | None = None, available: list[str] | None = None):
        self.method = method
        self.kind = kind
        self.available = sorted(available) if available else []
        where = f" for importance kind '{kind}'" if kind else ""
        message = f"No records for method '{method}'{where}"
        if self.available:
            message += f". Available: {', '.join(self.available)}"
        super().__init__(message)


class EmptyCollectionError(GeneSelError):
    """Overlap requested over fewer than two gene lists."""

    pass


class DimensionMismatchError(GeneSelError):
    """A GeneList's identifier sequences have unequal length."""

    pass
