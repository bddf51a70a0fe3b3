"""ZIP archive ingestion: XML entries -> ExtractedFile list.

Only file entries whose name ends in ``.xml`` (any case) are read; all other
entries are ignored. A single entry that fails to decompress or to parse is
logged and skipped without affecting the rest of the batch. Entries are
parsed and extracted concurrently in worker threads and returned in archive
order.
"""

from __future__ import annotations

import asyncio
import io
import zipfile
import zlib
from dataclasses import dataclass

import structlog

from src.app.core.errors import ArchiveError, XMLParseError
from src.app.core.monitoring import archive_entries_total
from src.app.projects.extractor import extract_projects
from src.app.projects.schemas import ExtractedFile
from src.app.projects.xml_tree import parse_xml

logger = structlog.get_logger(__name__)

# Raised by ZipFile.read for corrupt, truncated, encrypted or unsupported entries.
_ENTRY_DECODE_ERRORS = (
    zipfile.BadZipFile,
    zlib.error,
    EOFError,
    NotImplementedError,
    RuntimeError,
)


@dataclass(frozen=True)
class ArchiveEntry:
    """Decompressed content of one XML archive entry."""

    path: str
    content: bytes


def is_xml_entry(info: zipfile.ZipInfo) -> bool:
    return not info.is_dir() and info.filename.lower().endswith(".xml")


def read_xml_entries(data: bytes) -> list[ArchiveEntry]:
    """Decompress every XML entry of a ZIP payload.

    Raises:
        ArchiveError: ``data`` is not a ZIP archive.
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as exc:
        raise ArchiveError(f"Uploaded file is not a valid zip archive: {exc}") from exc

    entries: list[ArchiveEntry] = []
    with archive:
        for info in archive.infolist():
            if not is_xml_entry(info):
                continue
            try:
                content = archive.read(info)
            except _ENTRY_DECODE_ERRORS as exc:
                archive_entries_total.labels(outcome="decode_error").inc()
                logger.warning(
                    "archive.entry_decode_failed",
                    path=info.filename,
                    error=str(exc),
                )
                continue
            entries.append(ArchiveEntry(path=info.filename, content=content))

    logger.debug("archive.entries_read", xml_entries=len(entries))
    return entries


def extract_entry(entry: ArchiveEntry) -> ExtractedFile | None:
    """Parse and normalize one entry; None when it is not well-formed XML."""
    try:
        document = parse_xml(entry.content, path=entry.path)
    except XMLParseError as exc:
        archive_entries_total.labels(outcome="parse_error").inc()
        logger.warning("archive.entry_parse_failed", path=entry.path, error=str(exc))
        return None

    data = extract_projects(document)
    if isinstance(data, list):
        archive_entries_total.labels(outcome="extracted").inc()
        logger.debug("archive.entry_extracted", path=entry.path, projects=len(data))
    else:
        archive_entries_total.labels(outcome="passthrough").inc()
        logger.info("archive.entry_without_projects", path=entry.path)

    return ExtractedFile(file_name=entry.path, data=data)


async def extract_archive(data: bytes) -> list[ExtractedFile]:
    """Extract every XML entry of a ZIP payload concurrently.

    Raises:
        ArchiveError: ``data`` is not a ZIP archive.
    """
    entries = await asyncio.to_thread(read_xml_entries, data)
    results = await asyncio.gather(
        *(asyncio.to_thread(extract_entry, entry) for entry in entries)
    )
    return [r for r in results if r is not None]
