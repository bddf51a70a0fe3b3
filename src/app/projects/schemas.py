"""Pydantic schemas for normalized project records and reconciliation output.

Defines:
- Enums: TeamRole
- Project entities: Phone, Address, Contact, Company, Bidder, TeamMember, Project
- Reconciliation: MatchRecord, ReconciliationStats, ReconciliationResult
- Ingestion: ExtractedFile

All models serialize with camelCase aliases (``projectId``, ``prospectiveBidders``)
and the project entities are frozen once built.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# ── Enums ───────────────────────────────────────────────────────────────────


class TeamRole(str, Enum):
    """Recognized project team roles. Companies with any other role are dropped."""

    ARCHITECT = "Architect"
    ENGINEER = "Engineer"
    CONSULTANT = "Consultant"
    OWNER = "Owner"
    TENANT = "Tenant"


# ── Project Entities ────────────────────────────────────────────────────────


class Phone(_CamelModel):
    type: str | None = None
    number: str | None = None


class Address(_CamelModel):
    type: str | None = None
    address1: str | None = None
    address2: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    county: str | None = None


class Contact(_CamelModel):
    """A named person at a company. Nameless contacts are never built."""

    contact_id: str | None = None
    name: str
    email: str | None = None
    phone: str | None = None
    linkedin: str | None = Field(default=None, alias="linkedIn")


class Company(_CamelModel):
    """Fields shared by bidders and team members."""

    company_id: str | None = None
    name: str | None = None
    url: str | None = None
    website: str | None = None
    email: str | None = None
    contacts: list[Contact] = Field(default_factory=list)
    address: Address | None = None
    phones: list[Phone] = Field(default_factory=list)


class Bidder(Company):
    bidding_role: str
    rank: int | None = None


class TeamMember(Company):
    role: TeamRole


class Project(_CamelModel):
    """One normalized ``<Project>`` record.

    ``prospective_bidders`` and ``project_team`` are disjoint: each source
    company lands in at most one of them.
    """

    project_id: str | None = None
    title: str | None = None
    stage: str | None = None
    url: str | None = None
    update_date: str | None = None
    update_text: str | None = None
    prospective_bidders: list[Bidder] = Field(default_factory=list)
    project_team: list[TeamMember] = Field(default_factory=list)


# ── Reconciliation ──────────────────────────────────────────────────────────


class MatchRecord(_CamelModel):
    """A CRM lead joined to the project sharing its derived identifier."""

    lead: dict[str, Any]
    project: Project
    project_id: str
    lead_stage: Any = None
    railway_stage: str | None = None
    railway_mapped_stage: str | None = None
    stage_changed: bool


class ReconciliationStats(_CamelModel):
    """Per-pass lead counts. ``changed + unchanged + unmatched + no_identifier == total_leads``."""

    total_leads: int = 0
    no_identifier: int = 0
    unmatched: int = 0
    unchanged: int = 0
    changed: int = 0


class ReconciliationResult(_CamelModel):
    """Every matched lead (changed and unchanged) plus the pass statistics."""

    matches: list[MatchRecord] = Field(default_factory=list)
    stats: ReconciliationStats = Field(default_factory=ReconciliationStats)

    @property
    def changed(self) -> list[MatchRecord]:
        return [m for m in self.matches if m.stage_changed]


# ── Ingestion ───────────────────────────────────────────────────────────────


class ExtractedFile(_CamelModel):
    """Extraction output for one XML archive entry.

    ``data`` is the project list, or the raw parsed tree when the document
    carries no ``Projects/Project`` container.
    """

    file_name: str
    data: list[Project] | dict[str, Any]

    @property
    def projects(self) -> list[Project]:
        return self.data if isinstance(self.data, list) else []
