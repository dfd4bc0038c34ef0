"""
Exception hierarchy for the overlay editor.

Import failures are user-visible and always leave the session blank.
Everything else is either recovered locally (and logged) or surfaced
to the caller as one of the classes below.
"""


class EditorError(Exception):
    """Base class for all editor errors."""


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


class ImportFailure(EditorError):
    """A source document could not be turned into editable pages."""


class NotADocument(ImportFailure):
    """The blob is empty or does not carry a PDF signature."""


class DecodeError(ImportFailure):
    """The document is malformed, empty, or a page failed to rasterize."""


class EncryptedOrProtected(ImportFailure):
    """The document requires a password to be opened."""


class ReadFailure(ImportFailure):
    """The source file could not be read from disk."""


# ---------------------------------------------------------------------------
# Editing / export
# ---------------------------------------------------------------------------


class LocateError(EditorError):
    """Text runs could not be extracted for click localisation."""


class InvalidImage(EditorError):
    """An image blob supplied for an element fill could not be decoded."""


class ExportError(EditorError):
    """Export aborted before producing an output document."""


class SessionBusy(EditorError):
    """An import or export is already in flight."""
