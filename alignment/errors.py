"""Exceptions and warnings raised by alignment methods."""


class AlignmentValidationError(ValueError):
    """Raised when alignment inputs are invalid. No agent has been modified."""
    pass


class AlignmentConvergenceWarning(RuntimeWarning):
    """Issued when an alignment loop exhausts its budget before reaching the target."""
    pass
