"""Exception hierarchy for the archive/CRM reconciliation pipeline.

Only the I/O boundary raises these. The core transformations (extraction,
identifier derivation, stage canonicalization, reconciliation) degrade
missing or malformed data to ``None`` instead of raising.

Exports:
    ReconcilerError: Base class for all pipeline errors.
    ArchiveError: Uploaded payload is not a readable ZIP archive (fatal).
    XMLParseError: A single archive entry is not well-formed XML (per entry).
    CRMFetchError: The CRM lead fetch failed (fatal for the whole run).
"""

from __future__ import annotations


class ReconcilerError(Exception):
    """Base class for errors raised at the pipeline boundary."""


class ArchiveError(ReconcilerError):
    """Raised when the uploaded payload cannot be opened as a ZIP archive."""


class XMLParseError(ReconcilerError):
    """Raised when an archive entry cannot be parsed as XML.

    Attributes:
        path: Archive entry path of the offending document (if known).
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class CRMFetchError(ReconcilerError):
    """Raised when fetching leads from the CRM fails.

    No partial lead list is ever returned alongside this error.

    Attributes:
        status_code: HTTP status returned by the CRM, None for transport errors.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)
