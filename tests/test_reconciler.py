"""Tests for lead/project reconciliation and lead field access.

Uses plain Project models and Close-style lead dicts (no CRM calls).

Covers:
    - Matching stage (raw label or canonical code) excluded from reconcile()
    - Divergent stage reported with the canonicalized project stage
    - Duplicate project identifiers: last project wins
    - Leads without a URL / without a derivable id / unmatched are skipped
    - match_leads returns unchanged matches too, with consistent stats
    - lead_field: flattened and nested custom-field keys
"""

from __future__ import annotations

from types import MappingProxyType

from src.app.crm.field_mapping import lead_field
from src.app.projects.reconciler import index_projects, match_leads, reconcile
from src.app.projects.schemas import Project
from tests.factories import STAGE_FIELD, URL_FIELD, make_lead


def _reconcile(leads, projects):
    return reconcile(leads, projects, url_field=URL_FIELD, stage_field=STAGE_FIELD)


def _project(url: str | None, stage: str | None, **kwargs) -> Project:
    return Project(url=url, stage=stage, **kwargs)


class TestIndexProjects:
    def test_last_project_wins_for_shared_identifier(self) -> None:
        first = _project("https://x.example.com/p/111/1", "Pre-Bid", title="first")
        second = _project("https://x.example.com/p/111/2", "Open Bid", title="second")

        index = index_projects([first, second])

        assert list(index) == ["111"]
        assert index["111"].title == "second"

    def test_projects_without_identifier_are_not_indexed(self) -> None:
        index = index_projects([_project(None, "Pre-Bid"), _project("https://x/none", "OB")])
        assert index == {}


class TestReconcile:
    def test_matching_stage_is_excluded(self) -> None:
        projects = [_project(".../111/1", "Pre-Bid")]
        leads = [make_lead(".../111/1", "Pre-Bid")]

        assert _reconcile(leads, projects) == []

    def test_canonical_code_on_lead_is_a_match(self) -> None:
        projects = [_project(".../111/1", "Open Bid")]
        leads = [make_lead(".../111/1", "OB")]

        assert _reconcile(leads, projects) == []

    def test_divergent_stage_is_reported(self) -> None:
        project = _project(".../111/1", "Pre-Bid")
        lead = make_lead(".../111/1", "Something Else")

        matches = _reconcile([lead], [project])

        assert len(matches) == 1
        record = matches[0]
        assert record.stage_changed is True
        assert record.railway_mapped_stage == "Bid Date Set"
        assert record.railway_stage == "Pre-Bid"
        assert record.lead_stage == "Something Else"
        assert record.project_id == "111"
        assert record.project == project
        assert record.lead == lead

    def test_duplicate_identifier_reconciles_against_later_project(self) -> None:
        projects = [
            _project("https://x/p/111/1", "Open Bid", title="earlier"),
            _project("https://x/p/111/9", "Post Bid", title="later"),
        ]
        leads = [make_lead("https://crm/p/111/1", "OB")]

        matches = _reconcile(leads, projects)

        assert len(matches) == 1
        assert matches[0].project.title == "later"
        assert matches[0].railway_mapped_stage == "PB"

    def test_lead_without_url_is_skipped(self) -> None:
        projects = [_project(".../111/1", "Pre-Bid")]
        assert _reconcile([make_lead(None, "Other")], projects) == []

    def test_lead_with_unparseable_url_is_skipped(self) -> None:
        projects = [_project(".../111/1", "Pre-Bid")]
        assert _reconcile([make_lead("https://crm/p/abc", "Other")], projects) == []

    def test_unmatched_lead_is_skipped(self) -> None:
        projects = [_project(".../111/1", "Pre-Bid")]
        assert _reconcile([make_lead(".../222/1", "Other")], projects) == []

    def test_missing_lead_stage_differs_from_known_stage(self) -> None:
        projects = [_project(".../111/1", "Pre-Bid")]
        matches = _reconcile([make_lead(".../111/1", None)], projects)

        assert len(matches) == 1
        assert matches[0].lead_stage is None

    def test_unknown_project_stage_compared_verbatim(self) -> None:
        projects = [_project(".../111/1", "On Hold")]
        assert _reconcile([make_lead(".../111/1", "On Hold")], projects) == []

        matches = _reconcile([make_lead(".../111/1", "OB")], projects)
        assert matches[0].railway_mapped_stage == "On Hold"

    def test_lead_order_is_preserved(self) -> None:
        projects = [_project(".../1/1", "Open Bid"), _project(".../2/1", "Post Bid")]
        leads = [
            make_lead(".../2/1", "GC", id="b"),
            make_lead(".../1/1", "GC", id="a"),
        ]
        assert [m.lead["id"] for m in _reconcile(leads, projects)] == ["b", "a"]

    def test_empty_inputs(self) -> None:
        assert _reconcile([], []) == []
        assert _reconcile([make_lead(".../1/1", "OB")], []) == []


class TestMatchLeads:
    def test_mapping_leads_are_matched(self) -> None:
        projects = [_project(".../111/1", "Pre-Bid")]
        lead = MappingProxyType(make_lead(".../111/1", "OB", id="proxy"))

        result = match_leads([lead], projects, url_field=URL_FIELD, stage_field=STAGE_FIELD)

        assert result.stats.no_identifier == 0
        assert [m.lead["id"] for m in result.changed] == ["proxy"]

    def test_returns_unchanged_matches_and_stats(self) -> None:
        projects = [_project(".../111/1", "Pre-Bid"), _project(".../222/1", "Open Bid")]
        leads = [
            make_lead(".../111/1", "Bid Date Set", id="same"),
            make_lead(".../222/1", "LBA", id="stale"),
            make_lead(".../333/1", "OB", id="unmatched"),
            make_lead(None, "OB", id="no_url"),
        ]

        result = match_leads(leads, projects, url_field=URL_FIELD, stage_field=STAGE_FIELD)

        assert [(m.lead["id"], m.stage_changed) for m in result.matches] == [
            ("same", False),
            ("stale", True),
        ]
        assert [m.lead["id"] for m in result.changed] == ["stale"]

        stats = result.stats
        assert stats.total_leads == 4
        assert stats.changed == 1
        assert stats.unchanged == 1
        assert stats.unmatched == 1
        assert stats.no_identifier == 1
        assert (
            stats.changed + stats.unchanged + stats.unmatched + stats.no_identifier
            == stats.total_leads
        )

    def test_match_record_serializes_with_camel_case(self) -> None:
        projects = [_project(".../111/1", "Pre-Bid")]
        result = match_leads(
            [make_lead(".../111/1", "CD")],
            projects,
            url_field=URL_FIELD,
            stage_field=STAGE_FIELD,
        )

        data = result.matches[0].model_dump(mode="json", by_alias=True)

        assert data["railwayMappedStage"] == "Bid Date Set"
        assert data["railwayStage"] == "Pre-Bid"
        assert data["leadStage"] == "CD"
        assert data["stageChanged"] is True
        assert data["projectId"] == "111"
        assert data["lead"][URL_FIELD] == ".../111/1"


class TestLeadField:
    def test_flattened_custom_field(self) -> None:
        assert lead_field({"custom.cf_x": "v"}, "custom.cf_x") == "v"

    def test_nested_custom_field(self) -> None:
        assert lead_field({"custom": {"cf_x": "v"}}, "custom.cf_x") == "v"

    def test_nested_custom_field_by_label(self) -> None:
        lead = {"custom": {"Project URL": "https://x/p/1/2"}}
        assert lead_field(lead, "custom.Project URL") == "https://x/p/1/2"

    def test_plain_field(self) -> None:
        assert lead_field({"status_label": "Potential"}, "status_label") == "Potential"

    def test_missing_field_is_none(self) -> None:
        assert lead_field({}, "custom.cf_x") is None
        assert lead_field({"custom": None}, "custom.cf_x") is None
        assert lead_field({"a": 1}, "") is None

    def test_read_only_mapping_lead(self) -> None:
        lead = MappingProxyType({"custom": MappingProxyType({"cf_x": "v"}), "status_label": "Won"})
        assert lead_field(lead, "custom.cf_x") == "v"
        assert lead_field(lead, "status_label") == "Won"

    def test_non_dict_lead_is_none(self) -> None:
        assert lead_field(None, "custom.cf_x") is None
        assert lead_field(["custom.cf_x"], "custom.cf_x") is None
