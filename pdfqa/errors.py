"""Exceptions raised by the pdfqa pipeline.

Each class also derives from the closest builtin so callers that only know
about ``ValueError`` or ``FileNotFoundError`` still catch them.
"""


class PdfQAError(Exception):
    """Base exception for all pdfqa errors."""
    pass


class InvalidArgumentError(PdfQAError, ValueError):
    """An argument violates a constraint (e.g. chunk size <= 0, k <= 0)."""
    pass


class DimensionMismatchError(InvalidArgumentError):
    """
    Two vectors that must share a dimensionality do not.

    Raised when:
    - A query vector's length differs from the store's dimension
    - Records in one store have different vector lengths
    """

    def __init__(self, message: str, expected: int = None, actual: int = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class StoreNotFoundError(PdfQAError, FileNotFoundError):
    """
    The persisted embedding store does not exist.

    This is an expected condition: the caller should run the build phase.
    """

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class CorruptDataError(PdfQAError, ValueError):
    """The persisted store does not parse into the expected shape."""
    pass


class CollaboratorError(PdfQAError, RuntimeError):
    """
    An external collaborator call failed.

    Raised when:
    - The embedding or generation service is unreachable or errors
    - The embedding service returns an empty vector
    - PDF text extraction fails
    """

    def __init__(self, message: str, collaborator: str = None):
        super().__init__(message)
        self.collaborator = collaborator


class StoreWriteError(PdfQAError, OSError):
    """Writing the store failed (permissions, disk full, ...)."""
    pass


class StoreReadError(PdfQAError, OSError):
    """Reading an existing store failed for a reason other than absence."""
    pass
