"""
Credit Report Errors
====================
Error taxonomy for the credit report engine.

Fatal errors abort the render and no document is returned. Degraded assets
and capped tables are not errors and never reach the caller.
"""

from typing import Optional


class ReportError(Exception):
    """Base class: the report could not be generated."""


class ConfigurationError(ReportError):
    """Theme or engine tables are incomplete."""


class DataIntegrityError(ReportError):
    """A numeric invariant of the input data does not hold."""

    def __init__(self, invariant: str, message: str, reference: Optional[str] = None):
        self.invariant = invariant
        self.reference = reference
        detail = f"[{invariant}] {message}"
        if reference:
            detail += f" (ref: {reference})"
        super().__init__(detail)


class LayoutError(ReportError):
    """A block is taller than an empty content region."""


class BackendWriteError(ReportError):
    """The drawing backend failed while writing the document."""
