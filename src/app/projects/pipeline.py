"""End-to-end archive reconciliation: extract, fetch leads, reconcile.

Shared by the HTTP endpoints and the offline CLI script.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import structlog
from pydantic import BaseModel, Field

from src.app.core.monitoring import pipeline_duration_seconds
from src.app.crm.adapter import LeadSource
from src.app.projects.archive import extract_archive
from src.app.projects.reconciler import match_leads
from src.app.projects.schemas import ExtractedFile, Project, ReconciliationResult

logger = structlog.get_logger(__name__)


class PipelineResult(BaseModel):
    """Everything one archive run produced."""

    files: list[ExtractedFile] = Field(default_factory=list)
    total_leads: int = 0
    reconciliation: ReconciliationResult = Field(default_factory=ReconciliationResult)

    @property
    def projects(self) -> list[Project]:
        return [p for f in self.files for p in f.projects]

    def to_response(self, include_unchanged: bool = False) -> dict[str, Any]:
        """JSON body for ``POST /process``.

        ``matches`` holds the stage-changed leads only, unless
        ``include_unchanged`` is set, in which case it holds every matched lead.
        """
        matches = (
            self.reconciliation.matches if include_unchanged else self.reconciliation.changed
        )
        body: dict[str, Any] = {
            "success": True,
            "filesProcessed": len(self.files),
            "totalProjects": len(self.projects),
            "totalLeads": self.total_leads,
            "matchesFound": len(matches),
            "matches": [m.model_dump(mode="json", by_alias=True) for m in matches],
        }
        if include_unchanged:
            body["stats"] = self.reconciliation.stats.model_dump(mode="json", by_alias=True)
        return body


def extraction_response(files: Sequence[ExtractedFile]) -> dict[str, Any]:
    """JSON body for ``POST /extract``."""
    return {
        "success": True,
        "filesProcessed": len(files),
        "data": [f.model_dump(mode="json", by_alias=True) for f in files],
    }


async def run_pipeline(
    archive: bytes,
    lead_source: LeadSource,
    *,
    url_field: str,
    stage_field: str,
) -> PipelineResult:
    """Extract projects from ``archive``, fetch leads, and reconcile them.

    Raises:
        ArchiveError: ``archive`` is not a ZIP archive.
        CRMFetchError: The lead fetch failed; nothing is reconciled.
    """
    with pipeline_duration_seconds.labels(stage="extract").time():
        files = await extract_archive(archive)
    projects = [p for f in files for p in f.projects]
    logger.info("pipeline.archive_extracted", files=len(files), projects=len(projects))

    with pipeline_duration_seconds.labels(stage="fetch_leads").time():
        leads = await lead_source.fetch_leads()

    with pipeline_duration_seconds.labels(stage="reconcile").time():
        reconciliation = match_leads(
            leads,
            projects,
            url_field=url_field,
            stage_field=stage_field,
        )
    return PipelineResult(
        files=files,
        total_leads=len(leads),
        reconciliation=reconciliation,
    )
