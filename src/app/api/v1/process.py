"""Archive upload endpoints.

``POST /process`` extracts projects from an uploaded ZIP of XML files,
fetches CRM leads, and returns the leads whose stage is stale.
``POST /extract`` runs the extraction only and returns the normalized
records per file.

Both take a single multipart ``file`` field. A missing file is a 400; any
other failure is logged and reported as a 500 with the error message.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import JSONResponse

from src.app.api.deps import get_app_settings, get_lead_source
from src.app.config import Settings
from src.app.core.monitoring import archive_upload_bytes
from src.app.crm.adapter import LeadSource
from src.app.projects.archive import extract_archive
from src.app.projects.pipeline import extraction_response, run_pipeline

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["process"])


def _no_file_response() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "No file uploaded"},
    )


def _error_response(exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": str(exc)},
    )


@router.post("/process")
async def process_archive(
    file: UploadFile | None = File(default=None),
    include_unchanged: bool = Query(default=False),
    settings: Settings = Depends(get_app_settings),
    lead_source: LeadSource = Depends(get_lead_source),
):
    """Reconcile an uploaded archive against CRM leads.

    Returns ``{success, filesProcessed, totalProjects, totalLeads,
    matchesFound, matches}``. With ``include_unchanged=true`` the matches
    list also carries leads whose stage already agrees, and a ``stats``
    object is added.
    """
    if file is None:
        return _no_file_response()

    try:
        archive = await file.read()
        archive_upload_bytes.observe(len(archive))
        result = await run_pipeline(
            archive,
            lead_source,
            url_field=settings.CRM_URL_FIELD,
            stage_field=settings.CRM_STAGE_FIELD,
        )
    except Exception as exc:
        logger.error("process.failed", filename=file.filename, error=str(exc), exc_info=True)
        return _error_response(exc)

    body = result.to_response(include_unchanged=include_unchanged)
    logger.info(
        "process.completed",
        filename=file.filename,
        files=body["filesProcessed"],
        projects=body["totalProjects"],
        leads=body["totalLeads"],
        matches=body["matchesFound"],
    )
    return body


@router.post("/extract")
async def extract_uploaded_archive(file: UploadFile | None = File(default=None)):
    """Return the normalized projects of every XML file in an uploaded archive."""
    if file is None:
        return _no_file_response()

    try:
        archive = await file.read()
        archive_upload_bytes.observe(len(archive))
        files = await extract_archive(archive)
    except Exception as exc:
        logger.error("extract.failed", filename=file.filename, error=str(exc), exc_info=True)
        return _error_response(exc)

    return extraction_response(files)
