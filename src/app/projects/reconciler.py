"""Reconciliation of CRM leads against normalized project records.

Joins each lead to the project sharing its derived identifier (see
``identifiers.extract_id``) and compares the lead's recorded stage with the
project's canonicalized stage.

Exports:
    index_projects: Build the identifier -> Project map (last one wins).
    match_leads: Every matched lead plus per-pass statistics.
    reconcile: Only the matched leads whose stage differs.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from src.app.core.monitoring import reconciliation_leads_total
from src.app.crm.field_mapping import lead_field
from src.app.projects.identifiers import extract_id
from src.app.projects.schemas import (
    MatchRecord,
    Project,
    ReconciliationResult,
    ReconciliationStats,
)
from src.app.projects.stages import canonicalize_stage

logger = structlog.get_logger(__name__)


def index_projects(projects: Iterable[Project]) -> dict[str, Project]:
    """Map derived identifier -> project.

    Projects without a derivable identifier are left out. When several
    projects share an identifier the last one encountered wins.
    """
    index: dict[str, Project] = {}
    for project in projects:
        project_id = extract_id(project.url)
        if project_id is not None:
            index[project_id] = project
    return index


def match_leads(
    leads: Iterable[Mapping[str, Any]],
    projects: Iterable[Project],
    *,
    url_field: str,
    stage_field: str,
) -> ReconciliationResult:
    """Join leads to projects and flag stage differences.

    Args:
        leads: Raw CRM lead records.
        projects: Normalized projects from every extracted document.
        url_field: Lead key holding the project URL.
        stage_field: Lead key holding the lead's recorded stage.

    Returns:
        ReconciliationResult with one MatchRecord per matched lead (changed and
        unchanged) and the per-pass counts.
    """
    index = index_projects(projects)
    matches: list[MatchRecord] = []
    total = no_identifier = unmatched = unchanged = changed = 0

    for lead in leads:
        total += 1
        project_id = extract_id(lead_field(lead, url_field))
        if project_id is None:
            no_identifier += 1
            continue

        project = index.get(project_id)
        if project is None:
            unmatched += 1
            continue

        lead_stage = lead_field(lead, stage_field)
        mapped_stage = canonicalize_stage(project.stage)
        # Leads may record either the canonical code or the raw source label.
        stage_changed = lead_stage not in (mapped_stage, project.stage)
        if stage_changed:
            changed += 1
        else:
            unchanged += 1

        matches.append(
            MatchRecord(
                lead=dict(lead),
                project=project,
                project_id=project_id,
                lead_stage=lead_stage,
                railway_stage=project.stage,
                railway_mapped_stage=mapped_stage,
                stage_changed=stage_changed,
            )
        )

    stats = ReconciliationStats(
        total_leads=total,
        no_identifier=no_identifier,
        unmatched=unmatched,
        unchanged=unchanged,
        changed=changed,
    )
    for outcome in ("no_identifier", "unmatched", "unchanged", "changed"):
        count = getattr(stats, outcome)
        if count:
            reconciliation_leads_total.labels(outcome=outcome).inc(count)

    logger.info(
        "reconcile.completed",
        projects_indexed=len(index),
        **stats.model_dump(),
    )
    return ReconciliationResult(matches=matches, stats=stats)


def reconcile(
    leads: Iterable[Mapping[str, Any]],
    projects: Iterable[Project],
    *,
    url_field: str,
    stage_field: str,
) -> list[MatchRecord]:
    """Return the matched leads whose stage differs from the project's canonical stage."""
    result = match_leads(leads, projects, url_field=url_field, stage_field=stage_field)
    return result.changed
